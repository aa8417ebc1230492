# product_analyzer/main.py
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from . import config
from .delegates import FileManagerDelegate, GeminiDelegate, TelemetryDelegate, WebScraperDelegate
from .exceptions import UnsupportedSiteError
from .models import AnalysisSession, NormalizedResult, PageDocument, ProductRecord
from .pipeline.extractor import is_supported_url
from .pipeline.steps import step_1_extract_product, step_2_analyze_product, step_3_report_trace

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    """Everything one run produced, plus the still-running trace upload if there is one."""
    record: ProductRecord
    prompt: str
    raw_text: str
    result: NormalizedResult
    model: str
    pending_tasks: List["asyncio.Task"] = field(default_factory=list)


def load_session(file_manager: FileManagerDelegate) -> AnalysisSession:
    """Reads the stored settings once; the session is not modified afterwards."""
    session = AnalysisSession.from_settings(file_manager.load_settings())
    for line in session.describe():
        logger.debug("Session %s", line)
    return session


async def load_document(url: Optional[str], html_file: Optional[Path], file_manager: FileManagerDelegate) -> PageDocument:
    """Loads the page either from a saved HTML file or, in a headless browser, from the web."""
    if html_file:
        return file_manager.load_snapshot(html_file, url)
    if not is_supported_url(url or ""):
        raise UnsupportedSiteError(url or "", config.SUPPORTED_DOMAIN)
    async with WebScraperDelegate(user_agent=config.USER_AGENT, viewport=config.VIEWPORT) as web_scraper:
        return await web_scraper.get_page(url, config.REQUEST_TIMEOUT)


async def analyze_document(
    document: PageDocument,
    session: AnalysisSession,
    analyst: Optional[GeminiDelegate] = None,
    reporter: Optional[TelemetryDelegate] = None,
) -> AnalysisOutcome:
    """
    Runs extraction and analysis, then schedules the trace upload without
    waiting for it. Extraction and API errors propagate to the caller.
    """
    record = step_1_extract_product(document)

    if analyst is None:
        async with GeminiDelegate() as gemini:
            prompt, raw_text, result = await step_2_analyze_product(record, session, gemini)
            model = gemini.last_model or config.PRIMARY_MODEL
    else:
        prompt, raw_text, result = await step_2_analyze_product(record, session, analyst)
        model = analyst.last_model or config.PRIMARY_MODEL

    outcome = AnalysisOutcome(record=record, prompt=prompt, raw_text=raw_text, result=result, model=model)
    task = step_3_report_trace(record, prompt, raw_text, result, session, reporter or TelemetryDelegate(), model)
    if task is not None:
        outcome.pending_tasks.append(task)
    return outcome


async def drain_pending_tasks(tasks: List["asyncio.Task"], timeout: float = config.TELEMETRY_DRAIN_TIMEOUT) -> None:
    """Gives background uploads a bounded amount of time to finish before the event loop closes."""
    if not tasks:
        return
    logger.debug("Waiting up to %.0fs for %d background task(s)...", timeout, len(tasks))
    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        logger.warning("Background task %s did not finish in time; cancelling.", task.get_name())
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def main(
    url: Optional[str],
    html_file: Optional[Path] = None,
    data_path: Path = config.DATA_PATH,
    on_result: Optional[Callable[[AnalysisOutcome], None]] = None,
) -> AnalysisOutcome:
    """The main orchestrator: load page, extract, analyze, show, then let telemetry finish."""
    file_manager = FileManagerDelegate(base_path=data_path)
    session = load_session(file_manager)

    document = await load_document(url, html_file, file_manager)
    outcome = await analyze_document(document, session)
    file_manager.save_analysis(outcome.record, outcome.result)

    if on_result is not None:
        on_result(outcome)

    await drain_pending_tasks(outcome.pending_tasks)
    logger.info("Analysis finished.")
    return outcome
