# product_analyzer/delegates/gemini_delegate.py
import copy
import logging
import httpx
from typing import Any, Dict, Optional

from .. import config
from ..exceptions import (
    InvalidCredentialsError,
    MalformedUpstreamResponseError,
    UpstreamAPIError,
    UpstreamUnavailableError,
)
from ..pipeline.prompts import RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

class GeminiDelegate:
    """
    Sends the analysis prompt to the Gemini generateContent endpoint.

    One request goes to the primary model. Only if that request fails at the
    transport level (no HTTP response at all) is it repeated, once, against
    the fallback model with the same body.
    """
    def __init__(
        self,
        base_url: str = config.GEMINI_BASE_URL,
        primary_model: str = config.PRIMARY_MODEL,
        fallback_model: str = config.FALLBACK_MODEL,
        timeout: float = config.GEMINI_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.timeout = timeout
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        # The model that produced the last successful answer, reported in telemetry.
        self.last_model: Optional[str] = None

    async def __aenter__(self):
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        logger.debug("GeminiDelegate httpx.AsyncClient initialized.")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            logger.debug("GeminiDelegate httpx.AsyncClient closed.")

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    @staticmethod
    def build_payload(prompt: str) -> Dict[str, Any]:
        generation_config = dict(config.GENERATION_CONFIG)
        generation_config["responseMimeType"] = "application/json"
        generation_config["responseSchema"] = copy.deepcopy(RESPONSE_SCHEMA)
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

    async def _post(self, model: str, payload: Dict[str, Any], api_key: str) -> httpx.Response:
        logger.debug("POST %s", self.endpoint(model))
        return await self.client.post(
            self.endpoint(model),
            json=payload,
            headers={"Content-Type": "application/json", "X-goog-api-key": api_key},
        )

    async def analyze(self, prompt: str, api_key: str) -> str:
        """Returns the first text part of the first candidate, unparsed."""
        if not api_key:
            raise InvalidCredentialsError()
        if not self.client:
            raise RuntimeError("GeminiDelegate must be used with 'async with' before calling analyze().")

        logger.debug("API key length: %d, prompt length: %d", len(api_key), len(prompt))
        payload = self.build_payload(prompt)
        model = self.primary_model
        try:
            response = await self._post(model, payload, api_key)
        except httpx.TransportError as e:
            logger.warning("Request to %s failed (%s). Trying fallback model %s...", model, e, self.fallback_model)
            model = self.fallback_model
            try:
                response = await self._post(model, payload, api_key)
            except httpx.TransportError as fallback_error:
                logger.error("Fallback model %s failed as well: %s", model, fallback_error)
                raise UpstreamUnavailableError([self.primary_model, self.fallback_model], fallback_error) from fallback_error

        if response.is_error:
            message = self._error_message(response)
            logger.error("Gemini API error from %s (HTTP %s): %s", model, response.status_code, message)
            raise UpstreamAPIError(response.status_code, message)

        text = self._extract_text(response)
        self.last_model = model
        logger.info("Received %d characters of analysis from %s.", len(text), model)
        return text

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            envelope = response.json()
        except ValueError:
            envelope = None
        if isinstance(envelope, dict) and isinstance(envelope.get("error"), dict):
            message = envelope["error"].get("message")
            if message:
                return str(message)
        return response.reason_phrase or "Unknown error"

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            logger.error("Gemini returned a non-JSON success body: %s", response.text[:200])
            raise MalformedUpstreamResponseError() from e
        try:
            candidate = data["candidates"][0]
            text = candidate["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected Gemini response shape: %s", str(data)[:500])
            raise MalformedUpstreamResponseError() from e
        if not isinstance(text, str):
            raise MalformedUpstreamResponseError()
        if candidate.get("finishReason") == "MAX_TOKENS":
            logger.warning("Gemini stopped at the output token limit; the answer may be truncated.")
        return text
