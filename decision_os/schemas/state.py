"""
Pydantic schemas for the profile, journal, change projects, brief and LLM proxy.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileRequest(BaseModel):
    """CEO profile captured at onboarding."""

    name: str = Field(..., min_length=1, description="CEO name")
    org: str = Field(..., min_length=1, description="Organisation")
    industry: str = Field(..., min_length=1, description="Industry")
    region: str = Field("asean", description="Regional context")
    style: Literal["direct", "solution", "balanced"] = Field("balanced", description="Communication style")


class ProfileResponse(ProfileRequest):
    created_at: Optional[str] = None


class JournalEntryRequest(BaseModel):
    """New decision, as submitted from the journal form."""

    statement: str = Field(..., min_length=1, description="The decision in one sentence")
    tier: Literal["1", "2", "3"] = "2"
    type: Literal["technical", "human", "political", "cultural"] = "technical"
    evidence: str = ""
    assumptions: str = ""
    confidence: Literal["high", "moderate", "low"] = "moderate"
    expected: str = Field("", description="Expected outcome")
    review_days: int = Field(30, ge=1, le=3650, description="Days until review")
    owner: Optional[str] = Field(None, description="Owner; defaults to the profile name")


class JournalEntryUpdate(BaseModel):
    """Edits to a logged decision; omitted fields are unchanged."""

    statement: Optional[str] = None
    tier: Optional[Literal["1", "2", "3"]] = None
    evidence: Optional[str] = None
    assumptions: Optional[str] = None
    confidence: Optional[Literal["high", "moderate", "low"]] = None
    expected_outcome: Optional[str] = None
    owner: Optional[str] = None
    review_date: Optional[str] = None
    status: Optional[str] = None
    actual_outcome: Optional[str] = None
    learning: Optional[str] = None


class JournalEntryResponse(BaseModel):
    """A logged decision."""

    id: str
    date: str
    statement: str
    tier: str
    type: str = "technical"
    evidence: str = ""
    assumptions: str = ""
    confidence: str = "moderate"
    expected: str = ""
    expected_outcome: str = ""
    owner: str = ""
    review_date: str = ""
    decided_by: str = ""
    status: str
    actual_outcome: str = ""
    learning: str = ""
    version: int = 1
    reviews: List[Dict[str, Any]] = Field(default_factory=list)


class JournalResponse(BaseModel):
    entries: List[JournalEntryResponse]
    pending: int
    overdue: List[str] = Field(default_factory=list, description="Ids of entries past their review date")
    decision_profile: Optional[Dict[str, Any]] = None


class ExtractDecisionRequest(BaseModel):
    """Assistant message to turn into a journal form."""

    ai_message: str = Field(..., description="Assistant reply")
    user_message: Optional[str] = Field(None, description="The user message it answered")


class ExtractDecisionResponse(BaseModel):
    detected: bool = Field(..., description="Whether the message reads like a decision")
    form: JournalEntryRequest


class ChangeProjectRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""


class WorkstreamUpdate(BaseModel):
    """One field change on one workstream."""

    field: Literal["status", "pct", "note"]
    value: Any


class WorkstreamResponse(BaseModel):
    name: str
    status: str
    pct: int
    note: str = ""
    updated_date: str = ""


class ChangeProjectResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    start_date: str
    workstreams: List[WorkstreamResponse]
    progress: int
    status: str


class BriefInsightResponse(BaseModel):
    text: str
    confidence: str = ""
    evidence: str = ""


class BriefResponse(BaseModel):
    situation: str
    risks: List[BriefInsightResponse]
    opportunities: List[BriefInsightResponse]
    decisions_needed: List[Dict[str, str]]


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: Any


class CompletionRequest(BaseModel):
    """Body of the LLM proxy."""

    model_config = ConfigDict(populate_by_name=True)

    system_prompt: Optional[str] = Field(None, alias="systemPrompt", description="System prompt")
    messages: List[ChatMessage] = Field(default_factory=list)
    stream: bool = False


class CompletionResponse(BaseModel):
    text: str


class ChatRequest(BaseModel):
    """Conversation so far, oldest first, ending with the new question."""

    messages: List[ChatMessage] = Field(default_factory=list)
    stream: bool = False


class ChatResponse(BaseModel):
    text: str
    data_attached: bool = Field(False, description="Whether the connected data went with the question")


class HealthResponse(BaseModel):
    ok: bool
    api_configured: bool
    mode: str
