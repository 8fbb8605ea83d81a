"""
Split-Dataset EDA Service — FastAPI Server (Port 8001)
========================================================
Upload a labelled training CSV and an unlabelled holdout CSV; get merged
descriptive statistics, missingness, correlations, target-rate cross-tabs,
findings, chart payloads and CSV/JSON exports.

Run:
  uvicorn main:app --host 0.0.0.0 --port 8001 --reload
  # or
  python main.py
"""

import logging
from contextlib import asynccontextmanager

# Load .env file BEFORE anything reads os.getenv()
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from app.config import settings  # noqa: E402

# ── Logging ──
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("eda_service")


# ── Lifespan: create tables ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.core.database import engine, Base

    # Import models so they register with Base.metadata
    import app.models.analysis_run  # noqa: F401

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(
        f"Database tables ready; target={settings.EDA_TARGET}, "
        f"identifier={settings.EDA_IDENTIFIER}"
    )

    yield
    logger.info("Shutting down EDA service")


# ── Create FastAPI app ──
app = FastAPI(
    title="Split-Dataset EDA Service",
    description=(
        "Merges a training and a holdout CSV and reports descriptive statistics, "
        "missingness, Pearson correlations, target-rate cross-tabs and findings, "
        "with chart payloads and CSV/JSON exports."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Mount all API routes ──
from app.api.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


# ── Root ──
@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Split-Dataset EDA Service",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {"eda": "/api/v1/eda/ (7 endpoints)"},
        "health": "/api/v1/eda/health",
    }


# ── Direct run ──
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
