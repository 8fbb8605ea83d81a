"""
Analysis Run — Database Model
================================
One row per completed analysis. The serialized report, chart payloads and
both exports are stored as text so a run can be served again without
re-uploading the files.

  from app.models.analysis_run import AnalysisRun

Table auto-created by Base.metadata.create_all(engine).
"""

from datetime import datetime
from uuid import uuid4
from sqlalchemy import Column, String, Text, Integer, Float, DateTime
from app.core.database import Base


class AnalysisRun(Base):
    __tablename__ = "analysis_runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Input shape
    train_name = Column(String(255), nullable=True)
    test_name = Column(String(255), nullable=True)
    train_rows = Column(Integer, nullable=False, default=0)
    test_rows = Column(Integer, nullable=False, default=0)
    target = Column(String(100), nullable=False)

    # Serialized outputs
    report = Column(Text, nullable=False)        # JSON text
    charts = Column(Text, nullable=False)        # JSON text
    summary = Column(Text, nullable=False)       # JSON text
    merged_csv = Column(Text, nullable=False)

    elapsed_ms = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AnalysisRun(id={self.id}, train={self.train_rows}, test={self.test_rows})>"
