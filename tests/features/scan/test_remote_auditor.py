import asyncio

import httpx
import pytest

from wcag_audit.features.scan.services.auditors import AuditTimeout, ParseError, UpstreamError
from wcag_audit.features.scan.services.auditors.remote import PageSpeedAuditor, parse_lighthouse_result

API_URL = "https://pagespeed.test/runPagespeed"


def lighthouse_payload(category_score=0.75, audits=None):
    if audits is None:
        audits = {
            "color-contrast": {
                "title": "Background and foreground colors do not have a sufficient contrast ratio.",
                "description": "Low-contrast text is difficult to read. [Learn more](https://web.dev)",
                "score": 0.3,
            },
            "document-title": {"title": "Document has a <title> element", "description": "", "score": 1},
            "heading-order": {
                "title": "Heading elements are not in a sequentially-descending order",
                "description": "Headings convey structure. [Learn more](https://web.dev)",
                "score": 0.8,
            },
            "aria-allowed-attr": {"title": "Not applicable", "description": "", "score": None},
        }
    return {"lighthouseResult": {"categories": {"accessibility": {"score": category_score}}, "audits": audits}}


def auditor_for(handler, api_key=None):
    return PageSpeedAuditor(api_url=API_URL, api_key=api_key, transport=httpx.MockTransport(handler))


class TestParseLighthouseResult:
    def test_keeps_failing_audits_in_order(self):
        result = parse_lighthouse_result(lighthouse_payload())

        assert result.category_score == 0.75
        assert [f.code for f in result.findings] == ["color-contrast", "heading-order"]
        assert [f.impact for f in result.findings] == ["serious", "moderate"]
        assert result.findings[0].sub_score == 0.3

    def test_caps_findings_at_twenty(self):
        audits = {f"audit-{i}": {"title": f"A{i}", "description": "", "score": 0} for i in range(37)}
        result = parse_lighthouse_result(lighthouse_payload(audits=audits))

        assert len(result.findings) == 20
        assert result.total_findings == 37
        assert len(result.impacts) == 37
        assert result.findings[0].code == "audit-0"

    def test_missing_category_score(self):
        payload = {"lighthouseResult": {"categories": {}, "audits": {}}}
        result = parse_lighthouse_result(payload)
        assert result.category_score is None
        assert result.findings == []

    @pytest.mark.parametrize(
        "payload",
        [[], {"error": "x"}, {"lighthouseResult": {"categories": "x", "audits": {}}}, {"lighthouseResult": {"audits": {"a": 1}}}],
    )
    def test_unexpected_shape(self, payload):
        with pytest.raises(ParseError):
            parse_lighthouse_result(payload)


class TestPageSpeedAuditor:
    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=lighthouse_payload())

        result = await auditor_for(handler, api_key="k").audit("https://example.com", timeout=5)

        assert seen["params"] == {"url": "https://example.com", "category": "accessibility", "key": "k"}
        assert result.category_score == 0.75
        assert len(result.findings) == 2

    @pytest.mark.asyncio
    async def test_no_key_param_without_api_key(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=lighthouse_payload())

        await auditor_for(handler).audit("https://example.com", timeout=5)
        assert "key" not in seen["params"]

    @pytest.mark.asyncio
    async def test_non_2xx_is_upstream_error(self):
        auditor = auditor_for(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(UpstreamError):
            await auditor.audit("https://example.com", timeout=5)

    @pytest.mark.asyncio
    async def test_connection_error_is_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError):
            await auditor_for(handler).audit("https://example.com", timeout=5)

    @pytest.mark.asyncio
    async def test_non_json_body_is_parse_error(self):
        auditor = auditor_for(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(ParseError):
            await auditor.audit("https://example.com", timeout=5)

    @pytest.mark.asyncio
    async def test_slow_api_times_out(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=lighthouse_payload())

        with pytest.raises(AuditTimeout):
            await auditor_for(handler).audit("https://example.com", timeout=0.05)

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(AuditTimeout):
            await auditor_for(handler).audit("https://example.com", timeout=5)
