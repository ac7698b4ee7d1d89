"""
IGS Ranking Engine API Server Entry Point

Mounts the ranking router on a FastAPI app.

Run locally or in deployment with:
  uvicorn main:app --host 0.0.0.0 --port $PORT
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from igs_engine import __version__
from igs_engine.ranking.admin import router as ranking_router

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="IGS Ranking Engine",
    description="Intent validation, classification, surplus and solution ranking",
    version=__version__,
)

# ============================================
# CORS Configuration
# ============================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(ranking_router)
logger.info(f"IGS Ranking Engine {__version__} routes registered")


@app.get("/")
def root():
    return {"service": "igs-ranking-engine", "version": __version__}


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
