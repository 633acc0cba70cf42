"""
LLM proxy route.

Forwards a system prompt and message history to the completion service.
With stream=true the reply is newline-delimited JSON: one {"text": ...}
object per delta, and {"error": ...} if the stream fails part way.
"""
import json
from typing import AsyncIterator, List, Optional

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from decision_os.api.dependencies import get_app_settings
from decision_os.config import CompletionConfig, Settings
from decision_os.exceptions import DecisionOSError, ValidationError
from decision_os.middleware.rate_limit import llm_rate_limit
from decision_os.schemas.state import CompletionRequest, CompletionResponse
from decision_os.services import llm_client

logger = structlog.get_logger(__name__)

router = APIRouter()


def _ndjson(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


async def _relay(first: str, deltas: AsyncIterator[str]) -> AsyncIterator[str]:
    """Emit the already-received first delta, then the rest; errors become a final line."""
    if first:
        yield _ndjson({"text": first})
    try:
        async for delta in deltas:
            yield _ndjson({"text": delta})
    except DecisionOSError as e:
        logger.error("llm_stream_interrupted", error=e.message, error_code=e.error_code)
        yield _ndjson({"error": e.message})


async def stream_response(
    config: CompletionConfig, system_prompt: Optional[str], messages: List[dict]
) -> StreamingResponse:
    """
    Start a streamed completion and wrap it as newline-delimited JSON.

    The first delta is awaited here, so failures before any text arrives
    raise instead of producing a 200 with an error line.
    """
    deltas = llm_client.stream(config, system_prompt, messages)
    try:
        first = await deltas.__anext__()
    except StopAsyncIteration:
        first = ""

    return StreamingResponse(
        _relay(first, deltas),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/api/claude", response_model=CompletionResponse)
@llm_rate_limit()
async def proxy_completion(
    request: Request,
    body: CompletionRequest,
    settings: Settings = Depends(get_app_settings),
):
    """
    Run one completion.

    Failures before the first delta (missing key, rate limit, upstream
    status) return a normal error response.
    """
    if not body.messages:
        raise ValidationError("Messages array is required", errors=["messages must be a non-empty list"])

    config = settings.completion_config()
    messages = [message.model_dump() for message in body.messages]

    if not body.stream:
        text = await llm_client.complete(config, body.system_prompt, messages)
        return CompletionResponse(text=text)

    return await stream_response(config, body.system_prompt, messages)
