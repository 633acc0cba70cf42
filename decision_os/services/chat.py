"""
Advisor chat.

The system prompt is rebuilt from the stored profile, connected data
sources and decision journal on every question. Only the most recent
messages are sent, and the latest question carries the connected data
when it opens the conversation or asks about the data.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import structlog

from decision_os.exceptions import ValidationError
from decision_os.services.prompts import build_system_prompt
from decision_os.services.storage import (
    KEY_DATA_SUMMARY,
    KEY_DATASETS_META,
    KEY_JOURNAL,
    KEY_PROFILE,
    KeyValueStore,
)

logger = structlog.get_logger(__name__)

Message = Dict[str, Any]

DATA_QUESTION_PATTERN = re.compile(
    r"data|scan|analyse|analyze|show|tell me about|pattern|finding|upload", re.IGNORECASE
)


@dataclass
class ChatRequestContext:
    """What a chat call sends: the system prompt and the trimmed history."""

    system_prompt: str
    messages: List[Message]
    data_attached: bool = False


def is_data_question(text: str) -> bool:
    return bool(DATA_QUESTION_PATTERN.search(text or ""))


def with_data_context(question: str, data_summary: str, source_count: int) -> str:
    return (
        f"[DATA CONTEXT - {source_count} source(s) connected]\n"
        f"{data_summary}\n\n[QUESTION]\n{question}"
    )


def trim_history(
    messages: Sequence[Message],
    data_summary: Optional[str] = None,
    source_count: int = 0,
    limit: int = 6,
) -> List[Message]:
    """
    Keep the last `limit` messages, attaching data to the final question when relevant.

    Args:
        messages: Full conversation, oldest first, ending with a user message.
        data_summary: Prompt block for the connected datasets, if any.
        source_count: Number of connected datasets.

    Raises:
        ValidationError: conversation is empty or does not end with a user message.
    """
    if not messages:
        raise ValidationError("Messages array is required", errors=["messages must be a non-empty list"])
    if messages[-1].get("role") != "user":
        raise ValidationError("The last message must be from the user")

    trimmed = [dict(message) for message in list(messages)[-limit:]]
    question = trimmed[-1].get("content")
    if not isinstance(question, str) or not data_summary:
        return trimmed

    first_question = sum(1 for message in messages if message.get("role") == "user") == 1
    if first_question or is_data_question(question):
        trimmed[-1]["content"] = with_data_context(question, data_summary, source_count)
    return trimmed


def build_chat_context(
    messages: Sequence[Message], store: KeyValueStore, history_limit: int = 6
) -> ChatRequestContext:
    """Assemble the system prompt and outgoing messages from stored state."""
    datasets_meta = store.get_list(KEY_DATASETS_META)
    system_prompt = build_system_prompt(
        store.get(KEY_PROFILE),
        datasets_meta,
        store.get_list(KEY_JOURNAL),
    )
    data_summary = store.get(KEY_DATA_SUMMARY) if datasets_meta else None
    outgoing = trim_history(messages, data_summary, len(datasets_meta), limit=history_limit)
    data_attached = outgoing[-1].get("content") != messages[-1].get("content")

    logger.info(
        "chat_context_built",
        messages=len(outgoing),
        dropped=len(messages) - len(outgoing),
        data_attached=data_attached,
    )
    return ChatRequestContext(system_prompt=system_prompt, messages=outgoing, data_attached=data_attached)
