"""
Common shapes for the accessibility auditors.

An auditor is anything with ``async audit(url, timeout) -> AuditResult``.
The remote PageSpeed auditor and the headless-browser auditor both satisfy
it, so the orchestrator never needs to know which one it was given.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

MAX_FINDINGS = 20
MAX_NODES_PER_FINDING = 3


class AuditError(Exception):
    """An audit could not produce a result. Never shown to API callers."""


class UpstreamError(AuditError):
    pass


class AuditTimeout(AuditError):
    pass


class ParseError(AuditError):
    pass


class NavigationTimeout(AuditError):
    pass


class LaunchError(AuditError):
    pass


class EngineError(AuditError):
    pass


@dataclass
class RawFinding:
    code: str
    title: str
    description: str
    impact: str
    sub_score: Optional[float] = None
    nodes: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class AuditResult:
    findings: List[RawFinding]
    # 0-1 aggregate; only the remote engine reports one
    category_score: Optional[float] = None
    # Findings reported before truncation to MAX_FINDINGS
    total_findings: int = 0
    impacts: List[str] = field(default_factory=list)


class Auditor(Protocol):
    name: str

    async def audit(self, url: str, timeout: Optional[float]) -> AuditResult:
        ...
