"""
Split-Dataset EDA Endpoints
=============================
Upload a training CSV and a holdout CSV, get the full analysis back, then
fetch charts and exports for that run later.

  POST /eda/analyze                    — train_file + test_file → run id + report
  GET  /eda/runs                       — most recent runs
  GET  /eda/runs/{run_id}              — stored report
  GET  /eda/runs/{run_id}/charts       — chart payloads
  GET  /eda/runs/{run_id}/export/csv   — merged dataset (text/csv attachment)
  GET  /eda/runs/{run_id}/export/json  — summary (application/json attachment)
  GET  /eda/health                     — component status

Errors:
  SchemaViolation   → 422 {kind, message}
  IngestionFailure  → 400
  unknown run       → 404
  run in flight     → 409
  upload too large  → 413
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile

from app.config import settings
from app.core.database import get_db
from app.core.eda.analysis import EdaAnalyzer
from app.core.eda.errors import EdaError, SchemaViolation
from app.core.eda.export import CSV_FILENAME, JSON_FILENAME
from app.core.eda.schema import default_schema
from app.core.run_store import RunStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/eda", tags=["Split-Dataset EDA"])

_STARTED_AT = time.time()


# ═══════════════════════════════════════════════════════════════
# RUN GUARD (one analysis at a time)
# ═══════════════════════════════════════════════════════════════

class _RunGuard:
    """Non-blocking single-run lock. A second caller is refused, not queued."""

    def __init__(self):
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self):
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()


_run_guard = _RunGuard()


# ═══════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════

def _http_error(e: EdaError) -> HTTPException:
    # IngestionFailure and anything else the engine rejects → 400
    status = 422 if isinstance(e, SchemaViolation) else 400
    return HTTPException(status_code=status, detail=e.to_dict())


def _not_found(run_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "run_not_found", "message": f"No analysis run with id {run_id}"},
    )


async def _read_upload(upload: UploadFile) -> bytes:
    content = await upload.read()
    limit = settings.EDA_MAX_UPLOAD_MB * 1024 * 1024
    if len(content) > limit:
        raise HTTPException(
            status_code=413,
            detail={
                "error": "upload_too_large",
                "message": f"{upload.filename} exceeds {settings.EDA_MAX_UPLOAD_MB} MB",
            },
        )
    return content


# ═══════════════════════════════════════════════════════════════
# RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════

class AnalyzeResponse(BaseModel):
    run_id: str
    report: Dict[str, Any]


class RunSummary(BaseModel):
    run_id: str
    train_rows: int
    test_rows: int
    target: str
    created_at: Optional[str] = None


class ChartsResponse(BaseModel):
    run_id: str
    charts: List[Dict[str, Any]] = []


class HealthResponse(BaseModel):
    status: str
    components: Dict[str, str]
    run_in_flight: bool
    uptime_seconds: Optional[float] = None


# ═══════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════

@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
        train_file: UploadFile = File(..., description="Labelled training CSV"),
        test_file: UploadFile = File(..., description="Unlabelled holdout CSV"),
        db=Depends(get_db),
):
    """Parse, validate, merge and analyze both files, then store the run."""
    if not _run_guard.try_acquire():
        logger.warning("Analysis rejected: another run is in flight")
        raise HTTPException(
            status_code=409,
            detail={"error": "run_in_flight", "message": "An analysis is already running"},
        )

    try:
        train_bytes = await _read_upload(train_file)
        test_bytes = await _read_upload(test_file)

        analyzer = EdaAnalyzer(default_schema())
        try:
            report = analyzer.run_files(
                train_bytes, test_bytes,
                train_name=train_file.filename or "train.csv",
                test_name=test_file.filename or "test.csv",
            )
        except EdaError as e:
            logger.warning(f"Analysis failed: {e}")
            raise _http_error(e) from e

        run = RunStore(db).save(report, train_file.filename, test_file.filename)
        return AnalyzeResponse(run_id=run.id, report=report.to_dict())
    finally:
        _run_guard.release()


@router.get("/runs", response_model=List[RunSummary])
async def list_runs(
        limit: int = Query(20, ge=1, le=100, description="Max runs to return"),
        db=Depends(get_db),
):
    return [RunSummary(**r) for r in RunStore(db).recent(limit)]


@router.get("/runs/{run_id}", response_model=AnalyzeResponse)
async def get_run(run_id: str, db=Depends(get_db)):
    report = RunStore(db).report(run_id)
    if report is None:
        raise _not_found(run_id)
    return AnalyzeResponse(run_id=run_id, report=report)


@router.get("/runs/{run_id}/charts", response_model=ChartsResponse)
async def get_charts(run_id: str, db=Depends(get_db)):
    charts = RunStore(db).charts(run_id)
    if charts is None:
        raise _not_found(run_id)
    return ChartsResponse(run_id=run_id, charts=charts)


@router.get("/runs/{run_id}/export/csv")
async def export_csv(run_id: str, db=Depends(get_db)):
    text = RunStore(db).merged_csv(run_id)
    if text is None:
        raise _not_found(run_id)
    return Response(
        content=text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )


@router.get("/runs/{run_id}/export/json")
async def export_json(run_id: str, db=Depends(get_db)):
    text = RunStore(db).summary_json(run_id)
    if text is None:
        raise _not_found(run_id)
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{JSON_FILENAME}"'},
    )


@router.get("/health", response_model=HealthResponse)
async def eda_health():
    """EDA health check — reports status of all components."""
    components = {
        "ingestion": "active",
        "merger": "active",
        "descriptive": "active",
        "missingness": "active",
        "correlation": "active",
        "crosstab": "active",
        "insights": "active",
        "run_store": "active",
    }
    return HealthResponse(
        status="healthy",
        components=components,
        run_in_flight=_run_guard.busy,
        uptime_seconds=round(time.time() - _STARTED_AT, 1),
    )
