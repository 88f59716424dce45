import asyncio
from typing import Any, Dict, List, Optional

import httpx

from wcag_audit.features.scan.services.auditors.base import (
    MAX_FINDINGS,
    AuditResult,
    AuditTimeout,
    ParseError,
    RawFinding,
    UpstreamError,
)
from wcag_audit.features.scan.services.scoring import impact_from_subscore
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60.0
HEADERS = {"Accept": "application/json"}


class PageSpeedAuditor:
    """
    Runs Lighthouse's accessibility category through the PageSpeed Insights API.

    One GET per audit, cancelled when the deadline passes. Audits with a
    defined score below 1 are reported as findings, in response order.
    """

    name = "remote"

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.transport = transport

    def _params(self, url: str) -> Dict[str, str]:
        params = {"url": url, "category": "accessibility"}
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def _fetch(self, url: str, timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=HEADERS,
            transport=self.transport,
        ) as client:
            return await client.get(self.api_url, params=self._params(url))

    async def audit(self, url: str, timeout: Optional[float] = DEFAULT_TIMEOUT) -> AuditResult:
        timeout = timeout or DEFAULT_TIMEOUT
        logger.info(f"Requesting PageSpeed accessibility audit for {url} (timeout={timeout}s)")

        try:
            response = await asyncio.wait_for(self._fetch(url, timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise AuditTimeout(f"PageSpeed API did not answer within {timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"PageSpeed API request failed: {e}") from e

        if not response.is_success:
            raise UpstreamError(f"PageSpeed API error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError("PageSpeed API returned a non-JSON body") from e

        return parse_lighthouse_result(payload)


def parse_lighthouse_result(payload: Any) -> AuditResult:
    if not isinstance(payload, dict):
        raise ParseError("Unexpected PageSpeed payload")

    lighthouse = payload.get("lighthouseResult")
    if not isinstance(lighthouse, dict):
        raise ParseError("PageSpeed payload has no lighthouseResult")

    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}
    if not isinstance(categories, dict) or not isinstance(audits, dict):
        raise ParseError("lighthouseResult.categories/audits are not objects")

    accessibility = categories.get("accessibility") or {}
    category_score = accessibility.get("score") if isinstance(accessibility, dict) else None
    if category_score is not None and not isinstance(category_score, (int, float)):
        raise ParseError("Accessibility category score is not a number")

    findings: List[RawFinding] = []
    for audit_id, audit in audits.items():
        if not isinstance(audit, dict):
            raise ParseError(f"Audit {audit_id} is not an object")
        sub_score = audit.get("score")
        # null/absent scores are informative or not applicable
        if not isinstance(sub_score, (int, float)) or isinstance(sub_score, bool) or sub_score >= 1:
            continue
        findings.append(
            RawFinding(
                code=audit_id,
                title=audit.get("title") or "",
                description=audit.get("description") or "",
                impact=impact_from_subscore(sub_score),
                sub_score=float(sub_score),
            )
        )

    logger.info(f"PageSpeed reported {len(findings)} failing audits (score={category_score})")

    return AuditResult(
        findings=findings[:MAX_FINDINGS],
        category_score=category_score,
        total_findings=len(findings),
        impacts=[f.impact for f in findings],
    )
