"""
Run Store — Completed analyses, fetched by id
===============================================
Thin service over the AnalysisRun table. The orchestration layer hands it a
finished AnalysisReport; the API reads back the serialized views.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from app.core.eda.analysis import AnalysisReport
from app.core.eda.export import build_summary, to_csv, to_json

logger = logging.getLogger(__name__)


class RunStore:

    def __init__(self, db_session):
        self.db = db_session

    def save(
        self,
        report: AnalysisReport,
        train_name: Optional[str] = None,
        test_name: Optional[str] = None,
    ):
        from app.models.analysis_run import AnalysisRun

        run = AnalysisRun(
            train_name=train_name,
            test_name=test_name,
            train_rows=report.dataset.train_rows,
            test_rows=report.dataset.test_rows,
            target=report.schema.target,
            report=json.dumps(report.to_dict(), default=str),
            charts=json.dumps([c.to_dict() for c in report.charts()], default=str),
            summary=to_json(build_summary(report, timestamp=report.created_at)),
            merged_csv=to_csv(report.dataset),
            elapsed_ms=report.elapsed_ms,
        )
        try:
            self.db.add(run)
            self.db.commit()
            self.db.refresh(run)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Stored analysis run {run.id} ({run.train_rows} train / {run.test_rows} test)")
        return run

    def get(self, run_id: str):
        from app.models.analysis_run import AnalysisRun
        return self.db.query(AnalysisRun).filter(AnalysisRun.id == run_id).first()

    def report(self, run_id: str) -> Optional[Dict[str, Any]]:
        run = self.get(run_id)
        return json.loads(run.report) if run else None

    def charts(self, run_id: str) -> Optional[List[Dict[str, Any]]]:
        run = self.get(run_id)
        return json.loads(run.charts) if run else None

    def summary_json(self, run_id: str) -> Optional[str]:
        run = self.get(run_id)
        return run.summary if run else None

    def merged_csv(self, run_id: str) -> Optional[str]:
        run = self.get(run_id)
        return run.merged_csv if run else None

    def recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        from app.models.analysis_run import AnalysisRun
        rows = (
            self.db.query(AnalysisRun)
            .order_by(AnalysisRun.created_at.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "run_id": r.id,
                "train_rows": r.train_rows,
                "test_rows": r.test_rows,
                "target": r.target,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ]
