from fastapi import HTTPException, status

class VideoProException(HTTPException):
    """Base exception for the AI Video Pro application"""

    def __init__(self, status_code: int, detail: str, error_code: str = None):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code or self.__class__.__name__

class ValidationError(VideoProException):
    """Validation error"""

    def __init__(self, detail: str, field: str = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field = field

class AuthenticationError(VideoProException):
    """Authentication error"""

    def __init__(self, detail: str = "Invalid authentication credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="AUTHENTICATION_ERROR"
        )
        self.headers = {"WWW-Authenticate": "Bearer"}

class AuthorizationError(VideoProException):
    """Authorization error"""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="AUTHORIZATION_ERROR"
        )

class NotFoundError(VideoProException):
    """Resource not found error"""

    def __init__(self, resource: str, resource_id: str = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f": {resource_id}"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND_ERROR"
        )
        self.resource = resource
        self.resource_id = resource_id

class UploadTooLargeError(VideoProException):
    """Uploaded file exceeds the configured size limit"""

    def __init__(self, max_mb: int, filename: str = None):
        message = f"File exceeds the {max_mb} MB upload limit"
        if filename:
            message += f" (file: {filename})"
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=message,
            error_code="UPLOAD_TOO_LARGE"
        )
        self.filename = filename

class StorageError(VideoProException):
    """The external data store or file storage failed"""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Storage unavailable: {detail}",
            error_code="STORAGE_ERROR"
        )
