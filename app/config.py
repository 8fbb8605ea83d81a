"""
Application Settings — All via environment variables with sensible defaults.
"""
import os


class Settings:
    # ── Server ──
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8001"))
    RELOAD: bool = os.getenv("RELOAD", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ── Database ──
    # Default: SQLite (zero config). Production: set DATABASE_URL env var.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./eda_runs.db")

    # ── CORS ──
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:8000,http://localhost:3000,*")

    # ── Dataset roles (defaults match the Titanic competition files) ──
    EDA_TARGET: str = os.getenv("EDA_TARGET", "Survived")
    EDA_IDENTIFIER: str = os.getenv("EDA_IDENTIFIER", "PassengerId")
    EDA_PROVENANCE: str = os.getenv("EDA_PROVENANCE", "DataSource")

    # ── Uploads ──
    EDA_MAX_UPLOAD_MB: int = int(os.getenv("EDA_MAX_UPLOAD_MB", "25"))


settings = Settings()
