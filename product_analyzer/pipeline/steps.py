# product_analyzer/pipeline/steps.py
import asyncio
import logging
from typing import Optional, Tuple

from ..delegates import GeminiDelegate, TelemetryDelegate
from ..models import AnalysisSession, NormalizedResult, PageDocument, ProductRecord
from .extractor import extract
from .normalizer import normalize
from .prompts import build_prompt

logger = logging.getLogger(__name__)

def step_1_extract_product(document: PageDocument) -> ProductRecord:
    """
    Step 1: Reads the product fields from the page.
    Raises UnsupportedSiteError for pages outside the supported merchant.
    """
    logger.info("--- STEP 1: EXTRACTING PRODUCT DATA ---")
    record = extract(document)
    logger.info("Product: %s | Price: %s", record.title or "<no title>", record.price_text or "<no price>")
    logger.info("--- STEP 1 COMPLETE ---")
    return record


async def step_2_analyze_product(
    record: ProductRecord,
    session: AnalysisSession,
    analyst: GeminiDelegate,
) -> Tuple[str, str, NormalizedResult]:
    """
    Step 2: Builds the prompt, asks Gemini for the analysis and normalizes the answer.
    Returns (prompt, raw answer, normalized result).
    """
    logger.info("--- STEP 2: ANALYZING PRODUCT WITH GEMINI ---")
    prompt = build_prompt(record)
    logger.debug("Prompt created, length: %d", len(prompt))

    raw_text = await analyst.analyze(prompt, session.api_key)
    logger.debug("Raw answer (first 500 chars): %s", raw_text[:500])

    result = normalize(raw_text)
    logger.info("Rating: %.1f/5 | %d pros, %d cons, %d price quotes",
                result.rating, len(result.pros), len(result.cons), len(result.other_website_prices))
    logger.info("--- STEP 2 COMPLETE ---")
    return prompt, raw_text, result


def _log_trace_outcome(task: "asyncio.Task") -> None:
    if task.cancelled():
        logger.warning("Telemetry upload was cancelled before it finished.")
        return
    error = task.exception()
    if error is not None:
        logger.warning("Telemetry upload failed: %s", error)


def step_3_report_trace(
    record: ProductRecord,
    prompt: str,
    raw_text: str,
    result: NormalizedResult,
    session: AnalysisSession,
    reporter: TelemetryDelegate,
    model: str,
) -> Optional["asyncio.Task"]:
    """
    Step 3: Schedules the Langfuse trace upload in the background and returns
    immediately. Returns the task, or None when telemetry is not configured.
    """
    if not session.telemetry.is_complete:
        logger.debug("Telemetry not configured; no trace will be sent.")
        return None
    logger.info("--- STEP 3: SENDING TRACE IN BACKGROUND ---")
    task = asyncio.create_task(
        reporter.report(record, prompt, raw_text, result, session.telemetry, model=model),
        name="langfuse-trace",
    )
    task.add_done_callback(_log_trace_outcome)
    return task
