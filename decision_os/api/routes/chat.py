"""
Advisor chat route.
"""
from fastapi import APIRouter, Depends, Request

from decision_os.api.dependencies import get_app_settings, get_store
from decision_os.api.routes.llm_proxy import stream_response
from decision_os.config import Settings
from decision_os.middleware.rate_limit import llm_rate_limit
from decision_os.schemas.state import ChatRequest, ChatResponse
from decision_os.services import llm_client
from decision_os.services.chat import build_chat_context
from decision_os.services.storage import KeyValueStore

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask the advisor",
    description="Answer the latest question with the stored profile, connected data and decision journal in context.",
)
@llm_rate_limit()
async def chat(
    request: Request,
    body: ChatRequest,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    context = build_chat_context(
        [message.model_dump() for message in body.messages],
        store,
        history_limit=settings.chat_history_messages,
    )
    config = settings.completion_config()

    if body.stream:
        return await stream_response(config, context.system_prompt, context.messages)

    text = await llm_client.complete(config, context.system_prompt, context.messages)
    return ChatResponse(text=text, data_attached=context.data_attached)
