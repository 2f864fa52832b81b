"""
Fiber Friends Backend - Main Application

FastAPI application serving the monster vitality game loop.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fiber_friends.config import settings
from fiber_friends.api.routes import router
from fiber_friends.database import init_db
from fiber_friends.services.firebase import firebase_auth

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: init database and Firebase on startup.
    """
    logger.info("Starting Fiber Friends Backend...")

    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
        app.state.db_initialized = True
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        app.state.db_initialized = False

    logger.info("Initializing Firebase...")
    firebase_initialized = firebase_auth.initialize()
    app.state.firebase_initialized = firebase_initialized
    if not firebase_initialized:
        logger.warning("Firebase not initialized - auth may not work")

    yield

    logger.info("Shutting down Fiber Friends Backend...")


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="Monster vitality tracker for the Fiber Friends self-care game",
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "running",
        "db_initialized": getattr(app.state, "db_initialized", False),
        "firebase_initialized": getattr(app.state, "firebase_initialized", False),
    }
