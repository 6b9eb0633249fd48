import os
from dotenv import load_dotenv
load_dotenv()

# Supabase project (auth, users/jobs tables, storage)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "your-secret-key-change-in-production")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

SITE_URL = os.getenv("SITE_URL", "http://localhost:8000").rstrip("/")
SESSION_COOKIE = "sb_access_token"
PKCE_COOKIE = "sb_code_verifier"
OAUTH_PROVIDER = "google"

# Editor behaviour
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "3"))
POLL_TIMEOUT_SECONDS = float(os.getenv("POLL_TIMEOUT_SECONDS", "600"))
EDIT_CREDIT_COST = int(os.getenv("EDIT_CREDIT_COST", "1"))
EDIT_ETA = "1-3 minutes"
BACKEND_PENDING_MESSAGE = "Backend coming soon!"

EDIT_PROMPT_EXAMPLES = [
    "Remove the coffee cup from the table",
    "Make the sky more dramatic and orange",
    "Cut all silences longer than 2 seconds",
    "Stabilize the shaky footage and zoom in 1.5x",
]

# Uploads
UPLOAD_BUCKET = os.getenv("UPLOAD_BUCKET", "videos")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "512"))
VIDEO_EXTENSIONS = [".mp4", ".mov", ".webm", ".mkv", ".avi", ".m4v"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Demo user served when DEMO_MODE is on
DEMO_USER_ID = "550e8400-e29b-41d4-a716-446655440000"
DEMO_USER_EMAIL = "demo@aivideopro.app"
DEMO_USER_CREDITS = 50

# Credit packages shown on the pricing page (checkout not wired yet)
CREDIT_PACKAGES = {
    "starter_credits": {
        "name": "Starter Credits",
        "credits": 10,
        "price": 999,
        "description": "10 video edits",
        "features": ["10 credits", "Standard processing", "Email support"],
        "popular": False
    },
    "pro_credits": {
        "name": "Pro Credits",
        "credits": 30,
        "price": 2499,
        "description": "30 video edits",
        "features": ["30 credits", "Priority processing", "Priority support"],
        "popular": True
    },
    "studio_credits": {
        "name": "Studio Credits",
        "credits": 100,
        "price": 6999,
        "description": "100 video edits",
        "features": ["100 credits", "Express processing", "HD downloads", "Batch upload"],
        "popular": False
    }
}


def demo_mode_enabled() -> bool:
    """DEMO_MODE is read on every call so it can be flipped without a restart"""
    return os.getenv("DEMO_MODE", "false").lower() == "true"
