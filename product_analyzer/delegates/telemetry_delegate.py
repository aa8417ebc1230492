# product_analyzer/delegates/telemetry_delegate.py
import logging
import random
import string
import time
import httpx
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .. import config
from ..models import NormalizedResult, ProductRecord, TelemetryConfig

logger = logging.getLogger(__name__)

def _unique_id(prefix: str) -> str:
    """Millisecond timestamp plus a random base-36 suffix. Unique enough for trace ids, not for anything secret."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def build_trace_event(
    record: ProductRecord,
    prompt: str,
    raw_text: str,
    result: NormalizedResult,
    model: str,
) -> Dict[str, Any]:
    """Builds the single trace-create event that describes one analysis."""
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": _unique_id("event"),
        "timestamp": now,
        "type": "trace-create",
        "body": {
            "id": _unique_id("trace"),
            "name": config.TELEMETRY_TRACE_NAME,
            "input": {
                "product_title": record.title,
                "product_price": record.price_text,
                "product_brand": record.brand,
                "product_rating": record.rating_value,
                "product_url": record.source_url,
                "product_domain": record.domain,
                "prompt": prompt,
            },
            "output": {
                "raw_response": raw_text,
                "parsed_result": result.to_json_dict(),
            },
            "metadata": {
                "model": model,
                "client_version": config.CLIENT_VERSION,
                "timestamp": now,
            },
        },
    }


class TelemetryDelegate:
    """Posts analysis traces to a Langfuse ingestion endpoint. Never raises."""
    def __init__(self, timeout: float = config.TELEMETRY_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    async def report(
        self,
        record: ProductRecord,
        prompt: str,
        raw_text: str,
        result: NormalizedResult,
        telemetry: TelemetryConfig,
        model: str = config.PRIMARY_MODEL,
    ) -> bool:
        """Returns True if the trace was accepted, False if it was skipped or failed."""
        if not telemetry.is_complete:
            logger.debug("Langfuse configuration incomplete; skipping trace.")
            return False

        url = telemetry.host.rstrip("/") + config.TELEMETRY_INGESTION_PATH
        try:
            event = build_trace_event(record, prompt, raw_text, result, model)
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json={"batch": [event]},
                    auth=(telemetry.public_key, telemetry.secret_key),
                )
                response.raise_for_status()
            logger.info("Tracked analysis with Langfuse: %s", event["body"]["id"])
            return True
        except httpx.HTTPStatusError as e:
            logger.warning("Langfuse API error: %s - Response: %s", e, e.response.text[:200])
        except httpx.RequestError as e:
            logger.warning("Network error sending trace to %s: %s", url, e)
        except Exception as e:
            logger.warning("An unexpected error occurred while sending trace to %s: %s", url, e, exc_info=True)
        return False
