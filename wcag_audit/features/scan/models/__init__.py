"""
Scan models package.
"""
from wcag_audit.features.scan.models.scan import Scan, ScanStatus, TERMINAL_STATUSES

__all__ = ["Scan", "ScanStatus", "TERMINAL_STATUSES"]
