"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import images
from db import init_db
from settings import settings

logging.basicConfig(level=settings.LOG_LEVEL)


# Create app
app = FastAPI(
    title="Personalized Image API",
    description="Renders recipient-personalized images from templates",
    version="0.1.0",
)

# Images are embedded in third-party mail clients and pages
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Include routers
app.include_router(images.router, prefix="/images", tags=["images"])


@app.on_event("startup")
def startup_event():
    """Initialize database tables on startup."""
    init_db()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Personalized Image API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
