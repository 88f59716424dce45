import asyncio
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Optional

import requests
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from webdriver_manager.chrome import ChromeDriverManager

from wcag_audit.features.scan.services.auditors.base import (
    MAX_FINDINGS,
    MAX_NODES_PER_FINDING,
    AuditResult,
    AuditTimeout,
    EngineError,
    LaunchError,
    NavigationTimeout,
    RawFinding,
)
from wcag_audit.features.scan.services.scoring import normalize_impact
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)

WCAG_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa"]

RUN_AXE_SCRIPT = """
  const tags = arguments[0];
  const cb = arguments[arguments.length - 1];
  if (!window.axe) return cb({error: 'axe not injected'});
  axe.run(document, {runOnly: {type: 'tag', values: tags}})
    .then(r => cb({ok: true, violations: r.violations}))
    .catch(e => cb({error: (e && e.message) || String(e)}));
"""

# Flags the minimal hosted Chrome build needs to start inside small containers
BUNDLED_MINIMAL_ARGS = (
    "--single-process",
    "--no-zygote",
    "--disable-gpu",
    "--disable-extensions",
    "--hide-scrollbars",
)


@dataclass(frozen=True)
class BrowserConfig:
    mode: Literal["bundled-minimal", "system-installed"] = "system-installed"
    bundled_binary_path: Optional[str] = None
    chrome_binary_path: Optional[str] = None
    chromedriver_path: Optional[str] = None
    navigation_timeout: int = 30

    @classmethod
    def from_settings(cls, settings) -> "BrowserConfig":
        return cls(
            mode=settings.BROWSER_MODE,
            bundled_binary_path=settings.BUNDLED_CHROME_PATH,
            chrome_binary_path=settings.CHROME_BINARY_PATH,
            chromedriver_path=settings.CHROMEDRIVER_PATH,
            navigation_timeout=settings.NAVIGATION_TIMEOUT_SECONDS,
        )


def load_axe_source(script_path: str, script_url: str) -> str:
    """Read axe-core from disk, downloading it from the CDN once if missing."""
    if os.path.exists(script_path) and os.path.getsize(script_path) > 0:
        with open(script_path, "r", encoding="utf-8") as f:
            return f.read()

    try:
        response = requests.get(script_url, timeout=20)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise EngineError(f"Could not download axe-core from {script_url}: {e}") from e

    directory = os.path.dirname(script_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(script_path, "w", encoding="utf-8") as f:
        f.write(response.text)
    logger.info(f"Cached axe-core at {script_path}")
    return response.text


def _node_hint(node: Dict[str, Any]) -> Dict[str, str]:
    target = node.get("target") or []
    if isinstance(target, list):
        target = ", ".join(str(t) for t in target)
    return {"html": str(node.get("html") or ""), "target": str(target)}


def parse_axe_violations(violations: Any) -> AuditResult:
    if not isinstance(violations, list):
        raise EngineError("axe.run returned no violation list")

    findings: List[RawFinding] = []
    for violation in violations:
        if not isinstance(violation, dict):
            continue
        findings.append(
            RawFinding(
                code=str(violation.get("id") or ""),
                title=violation.get("help") or "",
                description=violation.get("description") or "",
                impact=normalize_impact(violation.get("impact")),
                nodes=[_node_hint(n) for n in (violation.get("nodes") or [])[:MAX_NODES_PER_FINDING]],
            )
        )

    return AuditResult(
        findings=findings[:MAX_FINDINGS],
        total_findings=len(findings),
        impacts=[f.impact for f in findings],
    )


class HeadlessBrowserAuditor:
    """
    Loads the page in headless Chrome, injects axe-core and collects its violations.

    Every browser session is released with driver.quit() whatever happens
    between launch and the end of the audit.
    """

    name = "headless"

    def __init__(self, config: BrowserConfig, axe_script_path: str, axe_script_url: str):
        self.config = config
        self.axe_script_path = axe_script_path
        self.axe_script_url = axe_script_url

    def build_options(self) -> Options:
        chrome_options = Options()
        chrome_options.add_argument("--headless=new")
        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")
        # "eager" returns from get() at DOMContentLoaded
        chrome_options.page_load_strategy = "eager"

        if self.config.mode == "bundled-minimal":
            for arg in BUNDLED_MINIMAL_ARGS:
                chrome_options.add_argument(arg)
            if self.config.bundled_binary_path:
                chrome_options.binary_location = self.config.bundled_binary_path
        elif self.config.chrome_binary_path:
            chrome_options.binary_location = self.config.chrome_binary_path

        return chrome_options

    def build_service(self) -> Service:
        if self.config.chromedriver_path:
            return Service(executable_path=self.config.chromedriver_path)
        if self.config.mode == "system-installed":
            return Service(ChromeDriverManager().install())
        return Service()

    def build_driver(self) -> webdriver.Chrome:
        try:
            return webdriver.Chrome(service=self.build_service(), options=self.build_options())
        except WebDriverException as e:
            raise LaunchError(f"Could not start Chrome ({self.config.mode}): {e.msg}") from e
        except (OSError, ValueError) as e:
            raise LaunchError(f"Could not start Chrome ({self.config.mode}): {e}") from e

    @contextmanager
    def browser_session(self) -> Iterator[webdriver.Chrome]:
        driver = self.build_driver()
        try:
            yield driver
        finally:
            try:
                driver.quit()
            except WebDriverException as e:
                logger.error(f"Error while closing browser session: {e}")

    def run(self, url: str) -> AuditResult:
        axe_source = load_axe_source(self.axe_script_path, self.axe_script_url)

        with self.browser_session() as driver:
            driver.set_page_load_timeout(self.config.navigation_timeout)
            driver.set_script_timeout(self.config.navigation_timeout)

            logger.info(f"Navigating to {url}")
            try:
                driver.get(url)
            except TimeoutException as e:
                raise NavigationTimeout(
                    f"Page did not load within {self.config.navigation_timeout}s"
                ) from e
            except WebDriverException as e:
                raise EngineError(f"Navigation to {url} failed: {e.msg}") from e

            try:
                driver.execute_script(axe_source)
                result = driver.execute_async_script(RUN_AXE_SCRIPT, WCAG_TAGS)
            except WebDriverException as e:
                raise EngineError(f"axe-core execution failed: {e.msg}") from e

            if not isinstance(result, dict) or result.get("error"):
                error = result.get("error") if isinstance(result, dict) else "empty result"
                raise EngineError(f"axe.run failed: {error}")

            audit_result = parse_axe_violations(result.get("violations"))

        logger.info(f"axe-core reported {audit_result.total_findings} violations for {url}")
        return audit_result

    async def audit(self, url: str, timeout: Optional[float] = None) -> AuditResult:
        # Selenium is blocking; the browser keeps its own navigation timeout
        task = asyncio.to_thread(self.run, url)
        if timeout is None:
            return await task
        try:
            return await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise AuditTimeout(f"Headless audit exceeded {timeout}s") from e
