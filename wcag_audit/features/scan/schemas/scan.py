"""
Scan Schemas

Request and response models for the scan endpoints and the stored
violation shape.
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Impact(str, Enum):
    minor = "minor"
    moderate = "moderate"
    serious = "serious"
    critical = "critical"


class NodeHint(BaseModel):
    """DOM location of a failing element."""
    html: str = ""
    target: str = ""


class Violation(BaseModel):
    """One stored rule failure, embedded in the scan's violations list."""
    id: str
    impact: Impact
    description: str
    help: str
    nodes: List[NodeHint] = Field(default_factory=list, max_length=3)


class ScanRequest(BaseModel):
    # Validated by the orchestrator so that any bad value is a 400, not a 422
    url: Optional[Any] = None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
            }
        }


class ScanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    status: str
    score: Optional[int] = None
    violations: Optional[List[Violation]] = None
    audit_backend: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_scan(cls, scan) -> "ScanOut":
        return cls(
            id=scan.id,
            url=scan.url,
            status=scan.status.value if hasattr(scan.status, "value") else str(scan.status),
            score=scan.score,
            violations=scan.violations,
            audit_backend=scan.audit_backend,
            user_id=scan.user_id,
            created_at=scan.created_at,
            completed_at=scan.completed_at,
        )


class DashboardStats(BaseModel):
    total_scans: int
    completed_scans: int
    failed_scans: int
    pending_scans: int
    average_score: Optional[int] = None


class DashboardOut(BaseModel):
    scans: List[ScanOut]
    stats: DashboardStats
    scans_this_month: int
    monthly_quota: int
    remaining_scans: int
