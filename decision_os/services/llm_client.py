"""
Text-completion client for the hosted Anthropic Messages API.

Every call takes a CompletionConfig; DEMO mode answers from canned text
without touching the network, LIVE mode posts to the API with httpx.
Streaming responses are Anthropic server-sent events reduced to text deltas.
"""
import asyncio
import json
import re
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import structlog

from decision_os.config import CompletionConfig, Mode, Settings
from decision_os.exceptions import (
    LLMNotConfiguredError,
    LLMRateLimitedError,
    LLMServiceError,
    LLMTimeoutError,
    LLMUpstreamError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

Message = Dict[str, Any]

SCAN_REQUEST_PATTERN = re.compile(r"scan", re.IGNORECASE)
REVENUE_REQUEST_PATTERN = re.compile(r"revenue intelligence scan", re.IGNORECASE)
BRIEF_REQUEST_PATTERN = re.compile(r"executive brief", re.IGNORECASE)

DEMO_PREAMBLE = "I will follow the diagnostic chain.\n\n"

DEMO_SCAN_RESPONSE = """FINDING 1
PATTERN: Vendor invoices are ageing beyond 30 days, creating a cash trap.
EVIDENCE: Sample shows multiple items >30 days (see uploaded dataset ageing fields). Amounts cluster around the same vendors.
RECURRENCE: Repeats weekly across the last 90 days.
IMPACT: Estimated RM 180,000 - RM 320,000 cash tied up; plus late-payment risk.
ROOT CAUSE: Approval workflow stalls + unclear decision owner.
FIX: Set a single decision owner; introduce 48-hour escalation; auto-approve under threshold with audit trail.
SEVERITY: Tier 1
CONFIDENCE: MODERATE - demo mode inference from sample rows.
ASSUMPTIONS: Ageing column reflects invoice age (inferred); currency is RM (inferred)

FINDING 2
PATTERN: Duplicate exception handling indicates process leaks.
EVIDENCE: Similar 'exception' or 'rework' notes appear multiple times for same record identifiers.
RECURRENCE: >3 times within 90 days.
IMPACT: RM 40,000 - RM 90,000 labour-equivalent cost per quarter; slower cycle times.
ROOT CAUSE: Manual workarounds around missing master data.
FIX: Add master-data validation at ingestion; block incomplete records.
SEVERITY: Tier 2
CONFIDENCE: LOW - needs more structured data.
ASSUMPTIONS: Duplicate IDs represent the same case (inferred)

SCAN SUMMARY
- Total findings count: 2
- Total financial exposure identified: RM 220,000 - RM 410,000
- Top 3 priority actions: (1) Name the decision owner, (2) implement escalation SLA, (3) fix master-data validation
- Data gaps that limit the analysis: Missing timestamps, owner fields, and cost-of-delay assumptions."""

DEMO_REVENUE_RESPONSE = """OPPORTUNITY 1
CATEGORY: Pricing Leakage
PATTERN: Rush orders are delivered at standard rates with no expedite fee.
EVIDENCE: Sample rows show repeated same-week deliveries billed at list price.
REVENUE POTENTIAL: RM 60,000 - RM 120,000 per year from a modest expedite surcharge.
TIMEFRAME: Quick Win (0-90 days)
ACTION: Publish an expedite fee schedule and apply it to new orders.
CONFIDENCE: MODERATE - demo mode inference from sample rows.
ASSUMPTIONS: Rush orders are flagged consistently (inferred)

OPPORTUNITY 2
CATEGORY: Data Assets
PATTERN: Supplier lead-time history could be packaged as a benchmarking report.
EVIDENCE: Several years of supplier delivery records across multiple categories.
REVENUE POTENTIAL: RM 150,000 - RM 400,000 over two years.
TIMEFRAME: Strategic (12+ months)
ACTION: Confirm data ownership terms with the top five suppliers.
CONFIDENCE: LOW - market appetite not yet tested.
ASSUMPTIONS: Contracts permit anonymised reuse (inferred)

REVENUE INTELLIGENCE SUMMARY
- Total opportunities identified: 2
- Total revenue potential range: RM 210,000 - RM 520,000
- Top 3 quick wins: (1) Expedite fee schedule
- Data gaps that would sharpen this analysis: Customer-level margin data."""

DEMO_BRIEF_RESPONSE = json.dumps({
    "situation": "Cash is tied up in slow approvals while rework drains capacity.",
    "risks": [
        {"text": "Vendor invoices ageing past 30 days", "confidence": "Medium", "evidence": "Demo scan finding 1"},
        {"text": "Repeated exception handling on the same records", "confidence": "Low", "evidence": "Demo scan finding 2"},
        {"text": "No named owner for payment approvals", "confidence": "Medium", "evidence": "Approval workflow stalls"},
    ],
    "opportunities": [
        {"text": "Auto-approve low-value invoices with an audit trail", "confidence": "High", "evidence": "Most stalled items are small"},
        {"text": "Validate master data at ingestion", "confidence": "Medium", "evidence": "Duplicate identifiers"},
        {"text": "Introduce a 48-hour escalation rule", "confidence": "Medium", "evidence": "Weekly recurrence"},
    ],
    "decisions_needed": [
        {"text": "Name a single owner for invoice approvals"},
    ],
})

DEMO_INTAKE_RESPONSE = """What decision are you trying to make right now?

1) The decision statement (one sentence)
2) The options on the table (2-3 max)
3) What data you have (or can upload)
4) When this decision becomes expensive if delayed"""


def _content_text(content: Any) -> str:
    """Flatten a message content value (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text", "") for block in content if isinstance(block, dict)
        )
    return "" if content is None else str(content)


def last_user_message(messages: List[Message]) -> str:
    for message in reversed(messages or []):
        if message.get("role") == "user":
            return _content_text(message.get("content"))
    return ""


def mock_assistant(messages: List[Message]) -> str:
    """
    Canned assistant reply used in DEMO mode.

    Brief requests get a fixed brief JSON, scan requests a fixed scan in
    the FINDING (or OPPORTUNITY, for revenue scans) format, and anything
    else the decision-intake questions.
    """
    last = last_user_message(messages)
    if BRIEF_REQUEST_PATTERN.search(last):
        return DEMO_BRIEF_RESPONSE
    if SCAN_REQUEST_PATTERN.search(last):
        if REVENUE_REQUEST_PATTERN.search(last):
            return DEMO_PREAMBLE + DEMO_REVENUE_RESPONSE
        return DEMO_PREAMBLE + DEMO_SCAN_RESPONSE
    return DEMO_PREAMBLE + DEMO_INTAKE_RESPONSE


def demo_chunks(text: str) -> List[str]:
    """Split canned text into the chunk sizes a live stream would roughly produce."""
    size = max(12, len(text) // 120)
    return [text[i:i + size] for i in range(0, len(text), size)]


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Decode one server-sent-event line.

    Returns:
        The JSON event, or None for blank, comment, [DONE] or non-JSON lines.
    """
    trimmed = line.strip()
    if not trimmed.startswith("data:"):
        return None
    payload = trimmed[5:].lstrip()
    if payload == "[DONE]":
        return None
    try:
        event = json.loads(payload)
    except ValueError:
        logger.debug("sse_line_not_json", payload=payload[:100])
        return None
    return event if isinstance(event, dict) else None


class LLMClient:
    """
    Async client for the Anthropic Messages API.

    Args:
        transport: Optional httpx transport, used by tests to stand in for
            the real API.
        demo_delay_seconds: Pause between canned chunks when streaming in
            DEMO mode.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        demo_delay_seconds: float = 0.0,
    ):
        self._transport = transport
        self._demo_delay = demo_delay_seconds

    def _headers(self, config: CompletionConfig) -> Dict[str, str]:
        if not config.api_key:
            raise LLMNotConfiguredError()
        return {
            "content-type": "application/json",
            "x-api-key": config.api_key,
            "anthropic-version": config.api_version,
        }

    def _payload(
        self,
        config: CompletionConfig,
        system_prompt: Optional[str],
        messages: List[Message],
        stream: bool,
    ) -> Dict[str, Any]:
        return {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "system": system_prompt or "",
            "messages": messages,
            "stream": stream,
        }

    def _http_client(self, config: CompletionConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=config.timeout_seconds, transport=self._transport)

    @staticmethod
    def _check_messages(messages: List[Message]) -> None:
        if not messages or not isinstance(messages, list):
            raise ValidationError("Messages array is required", errors=["messages must be a non-empty list"])

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code == 429:
            logger.warning("llm_rate_limited")
            raise LLMRateLimitedError()
        if response.status_code >= 400:
            body = response.text[:500]
            logger.error("llm_upstream_error", status_code=response.status_code, body=body)
            raise LLMUpstreamError(body or f"API error ({response.status_code})", status_code=response.status_code)

    async def complete(
        self,
        config: CompletionConfig,
        system_prompt: Optional[str],
        messages: List[Message],
    ) -> str:
        """
        Return the full assistant reply as one string.

        Raises:
            ValidationError: messages is empty.
            LLMServiceError: any upstream failure (see subclasses).
        """
        self._check_messages(messages)

        if config.mode == Mode.DEMO:
            return mock_assistant(messages)

        headers = self._headers(config)
        payload = self._payload(config, system_prompt, messages, stream=False)

        logger.info("llm_request", model=config.model, stream=False, messages=len(messages))
        try:
            async with self._http_client(config) as client:
                response = await client.post(config.api_url, json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.error("llm_timeout", timeout_seconds=config.timeout_seconds)
            raise LLMTimeoutError(config.timeout_seconds)
        except httpx.HTTPError as e:
            logger.error("llm_request_failed", error=str(e), error_type=type(e).__name__)
            raise LLMServiceError(str(e) or "Internal server error")

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("llm_malformed_response", status_code=response.status_code, body=response.text[:200])
            raise LLMUpstreamError("Malformed response body", status_code=response.status_code)
        text = "".join(
            block.get("text", "") for block in data.get("content") or [] if isinstance(block, dict)
        )
        logger.info("llm_response", chars=len(text))
        return text

    async def stream(
        self,
        config: CompletionConfig,
        system_prompt: Optional[str],
        messages: List[Message],
    ) -> AsyncIterator[str]:
        """
        Yield text deltas as they arrive.

        Error events in the stream raise LLMUpstreamError after any text
        already yielded.
        """
        self._check_messages(messages)

        if config.mode == Mode.DEMO:
            for chunk in demo_chunks(mock_assistant(messages)):
                if self._demo_delay:
                    await asyncio.sleep(self._demo_delay)
                yield chunk
            return

        headers = self._headers(config)
        payload = self._payload(config, system_prompt, messages, stream=True)

        logger.info("llm_request", model=config.model, stream=True, messages=len(messages))
        try:
            async with self._http_client(config) as client:
                async with client.stream("POST", config.api_url, json=payload, headers=headers) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        self._raise_for_status(response)

                    async for line in response.aiter_lines():
                        event = parse_sse_line(line)
                        if event is None:
                            continue
                        if event.get("type") == "content_block_delta":
                            text = (event.get("delta") or {}).get("text")
                            if text:
                                yield text
                        elif event.get("type") == "error":
                            message = (event.get("error") or {}).get("message") or "Stream error"
                            logger.error("llm_stream_error_event", message=message)
                            raise LLMUpstreamError(message)
        except httpx.TimeoutException:
            logger.error("llm_timeout", timeout_seconds=config.timeout_seconds, stream=True)
            raise LLMTimeoutError(config.timeout_seconds)
        except httpx.HTTPError as e:
            logger.error("llm_stream_failed", error=str(e), error_type=type(e).__name__)
            raise LLMServiceError(str(e) or "Stream error")


# Singleton instance
_client_instance: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get singleton LLMClient instance."""
    global _client_instance
    if _client_instance is None:
        _client_instance = LLMClient()
    return _client_instance


async def complete(config: CompletionConfig, system_prompt: Optional[str], messages: List[Message]) -> str:
    return await get_llm_client().complete(config, system_prompt, messages)


def stream(config: CompletionConfig, system_prompt: Optional[str], messages: List[Message]) -> AsyncIterator[str]:
    return get_llm_client().stream(config, system_prompt, messages)


def check_health(settings: Settings) -> Dict[str, Any]:
    """Report whether live completions are available."""
    return {
        "ok": True,
        "api_configured": settings.api_configured,
        "mode": settings.mode.value,
    }
