"""
AI Video Pro backend
FastAPI application: editor page, edit endpoint, uploads and job polling,
with Supabase authentication and storage
"""
import logging
import os
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import LOG_LEVEL, SITE_URL, demo_mode_enabled
from routes.auth_routes import router as auth_router
from routes.edit_routes import router as edit_router
from routes.job_routes import router as job_router
from routes.page_routes import router as page_router
from routes.payment_routes import router as payment_router
from routes.upload_routes import router as upload_router
from routes.user_routes import router as user_router
from services.db_utils import check_supabase_health, get_circuit_breaker_status
from services.upload_storage import LOCAL_URL_PREFIX, upload_storage
from shared_dependencies import get_supabase

SERVICE_NAME = "AI Video Pro"
VERSION = "1.0.0"

handlers = [logging.StreamHandler()]
if os.getenv("LOG_FILE"):
    os.makedirs(os.path.dirname(os.getenv("LOG_FILE")) or ".", exist_ok=True)
    handlers.append(logging.FileHandler(os.getenv("LOG_FILE")))

logging.basicConfig(
    level=LOG_LEVEL,
    format='{"timestamp": "%(asctime)s", "logger": "%(name)s", "status": "%(levelname)s", "message": "%(message)s"}',
    handlers=handlers
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=SERVICE_NAME,
    description="Upload a video, describe the edit, download the result",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[SITE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(page_router)
app.include_router(auth_router)
app.include_router(edit_router)
app.include_router(job_router)
app.include_router(upload_router)
app.include_router(user_router)
app.include_router(payment_router)

# Demo-mode uploads are written here by services.upload_storage. StaticFiles
# needs the directory to exist at request time
app.mount(LOCAL_URL_PREFIX, StaticFiles(directory=upload_storage.ensure_local_dir()), name="uploads")


@app.get("/api/health")
async def health_check():
    demo_mode = demo_mode_enabled()
    if demo_mode:
        database = {"healthy": True, "latency_ms": 0.0, "error": None, "backend": "memory"}
    else:
        database = await check_supabase_health(get_supabase())
        database["backend"] = "supabase"

    return {
        "success": True,
        "status": "healthy" if database["healthy"] else "degraded",
        "service": SERVICE_NAME,
        "version": VERSION,
        "database": database,
        "demo_mode": demo_mode,
        "circuit_breaker": get_circuit_breaker_status(),
        "timestamp": datetime.now().isoformat()
    }


# ========== APPLICATION ENTRY POINT ==========

if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 60)
    print(f"{SERVICE_NAME.upper()} v{VERSION} - BACKEND SERVER")
    print("=" * 60)
    print(f"Database: {'in-memory (DEMO_MODE)' if demo_mode_enabled() else 'Supabase'}")
    print(f"Site URL: {SITE_URL}")
    print(f"Documentation: {SITE_URL}/docs")
    print("=" * 60 + "\n")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=False
    )
