from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .core.config import settings
from .core.firebase_init import initialize_firebase, get_firebase_status
from .services.firebase_storage_init import get_bucket_info
from .routers import dashboard, equipment, purchasing, reports, tasks, users

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Equipment maintenance tracking, purchasing and reporting",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (equipment, tasks, dashboard, purchasing, users, reports):
    app.include_router(module.router)
    logger.debug(f"Included router {module.router.prefix}")


@app.on_event("startup")
async def startup_event():
    """Connect to Firebase once the server starts"""
    logger.info("[Startup] Initializing Firebase...")
    if initialize_firebase():
        logger.info("[Startup] Firebase initialized")
    else:
        logger.warning("[Startup] Firebase initialization failed - data routes will return errors")


@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.APP_NAME}"}


@app.get("/health")
async def health_check():
    firebase_status = get_firebase_status()
    storage_info = get_bucket_info() if firebase_status['available'] else {"available": False}
    return {
        "status": "healthy",
        "firebase_available": firebase_status['available'],
        "storage_available": storage_info['available'],
    }
