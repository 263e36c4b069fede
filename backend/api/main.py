"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import weather
from settings import settings


# Create app
app = FastAPI(
    title="Nearby Weather API",
    description="Place search, weather forecasts and nearby cities ranked by distance",
    version="0.1.0",
)

# CORS middleware for a separately hosted frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Include routers
app.include_router(weather.router, prefix="/api", tags=["weather"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Static frontend, if one is deployed alongside. Mounted last so /api wins.
if settings.PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(settings.PUBLIC_DIR), html=True), name="public")
