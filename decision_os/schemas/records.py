"""
Pydantic schemas for scan records and dashboard rollups.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class FindingResponse(BaseModel):
    """One parsed operational finding."""

    id: int = Field(..., description="Header number, or position when unreadable")
    pattern: str = Field(..., description="What is happening")
    evidence: str = Field("", description="Supporting data points")
    recurrence: str = Field("", description="Frequency and period")
    impact: str = Field("", description="Raw IMPACT text")
    root_cause: str = Field("", description="Process, people, system or governance cause")
    fix: str = Field("", description="Corrective action")
    tier: str = Field("2", description="Severity tier, 1 to 3")
    confidence: str = Field("", description="Confidence text")
    assumptions: str = Field("", description="Stated assumptions")
    max_amount: int = Field(0, description="Largest amount in IMPACT; 0 means unknown")
    daily_cost: int = Field(0, description="max_amount / 30, rounded half up")
    resolved: bool = Field(False, description="Whether the id is in the resolved set")
    fingerprint: Optional[str] = Field(None, description="Content key of the pattern text")


class OpportunityResponse(BaseModel):
    """One parsed revenue opportunity."""

    id: int
    pattern: str
    category: str = ""
    evidence: str = ""
    potential: str = Field("", description="Raw REVENUE POTENTIAL text")
    timeframe: str = ""
    timeframe_label: str = Field("", description="Timeframe without the parenthesised range")
    horizon: str = Field("", description="Quick Win, Medium Term or Strategic")
    action: str = ""
    confidence: str = ""
    assumptions: str = ""
    max_amount: int = 0
    daily_cost: int = 0
    is_quick_win: bool = False


class ParseReportResponse(BaseModel):
    """What the parser kept and skipped."""

    segments_seen: int = 0
    dropped_segments: int = 0
    upstream_error: bool = False
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class ParseTextRequest(BaseModel):
    """Raw LLM reply to parse."""

    text: str = Field(..., description="Full scan response text")


class ParsedFindingsResponse(BaseModel):
    findings: List[FindingResponse]
    report: ParseReportResponse


class ParsedOpportunitiesResponse(BaseModel):
    opportunities: List[OpportunityResponse]
    report: ParseReportResponse


class ScanResponse(BaseModel):
    """Stored scan with its parsed records."""

    kind: str = Field(..., description="operational or revenue")
    text: str = Field("", description="Raw scan reply")
    timestamp: Optional[str] = None
    error: bool = False
    industry: Optional[str] = None
    findings: List[FindingResponse] = Field(default_factory=list)
    opportunities: List[OpportunityResponse] = Field(default_factory=list)
    report: ParseReportResponse = Field(default_factory=ParseReportResponse)
    fallback_text: Optional[str] = Field(None, description="Raw text to show when nothing parsed")


class FindingsResponse(BaseModel):
    """Findings split by resolution state, highest priority first."""

    active: List[FindingResponse]
    resolved: List[FindingResponse]
    resolved_ids: List[int]
    total_exposure: int
    resolution_ratio: float
    health_band: str


class ToggleResponse(BaseModel):
    finding_id: int
    resolved: bool
    resolved_ids: List[int]


class DashboardResponse(BaseModel):
    """Command-centre figures."""

    active_count: int
    resolved_count: int
    total_findings: int
    total_exposure: int
    resolution_ratio: float
    resolution_percent: int = Field(..., description="resolution_ratio as a whole percentage")
    health_band: str
    has_critical: bool
    top_priorities: List[FindingResponse]
    decisions_logged: int
    pending_reviews: int
    overdue_reviews: int
    opportunity_count: int
    revenue_potential: int
    quick_wins: int
    top_opportunities: List[OpportunityResponse] = Field(default_factory=list)
