"""
Change-project tracking.

A project is a dict with six workstreams, each carrying a status, a
completion percentage and a note. Updates return new dicts.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import structlog

from decision_os.exceptions import ChangeProjectNotFoundError, ValidationError, WorkstreamNotFoundError
from decision_os.utils.identifiers import timestamp_id, today_utc

logger = structlog.get_logger(__name__)

STATUS_NOT_STARTED = "Not Started"
STATUS_IN_PROGRESS = "In Progress"
STATUS_AT_RISK = "At Risk"
STATUS_COMPLETE = "Complete"

STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_AT_RISK, STATUS_COMPLETE)

DEFAULT_WORKSTREAMS = (
    "Leadership & Governance Alignment",
    "Process Redesign & Documentation",
    "Technology Setup & Integration",
    "Staff Training & Adoption",
    "Data Migration & Quality",
    "Go-Live & Stabilisation",
)

WORKSTREAM_FIELDS = ("status", "pct", "note")


def new_workstream(name: str) -> Dict[str, Any]:
    return {"name": name, "status": STATUS_NOT_STARTED, "pct": 0, "note": "", "updated_date": ""}


def create_project(
    name: str,
    description: str = "",
    today: Optional[date] = None,
    project_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Start a project with the default workstreams, all Not Started."""
    if not name or not name.strip():
        raise ValidationError("Project name is required", errors=["name must not be empty"])
    today = today or today_utc()
    project = {
        "id": project_id or timestamp_id("CP"),
        "name": name.strip(),
        "description": description or "",
        "start_date": today.isoformat(),
        "workstreams": [new_workstream(ws) for ws in DEFAULT_WORKSTREAMS],
    }
    logger.info("change_project_created", project_id=project["id"])
    return project


def _validated_value(field: str, value: Any) -> Any:
    if field == "status":
        if value not in STATUSES:
            raise ValidationError(
                f"Unknown workstream status '{value}'",
                errors=[f"status must be one of: {', '.join(STATUSES)}"],
            )
        return value
    if field == "pct":
        try:
            pct = int(value)
        except (TypeError, ValueError):
            raise ValidationError("Workstream progress must be a whole number", errors=["pct must be an integer"])
        if not 0 <= pct <= 100:
            raise ValidationError("Workstream progress out of range", errors=["pct must be between 0 and 100"])
        return pct
    return "" if value is None else str(value)


def update_workstream(
    project: Dict[str, Any],
    index: int,
    field: str,
    value: Any,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Set one field of one workstream and stamp its updated_date.

    Raises:
        WorkstreamNotFoundError: index outside the workstream list.
        ValidationError: unknown field or invalid value.
    """
    workstreams = list(project.get("workstreams") or [])
    if not 0 <= index < len(workstreams):
        raise WorkstreamNotFoundError(project.get("id", ""), index)
    if field not in WORKSTREAM_FIELDS:
        raise ValidationError(
            f"Unknown workstream field '{field}'",
            errors=[f"field must be one of: {', '.join(WORKSTREAM_FIELDS)}"],
        )

    today = today or today_utc()
    workstreams[index] = {
        **workstreams[index],
        field: _validated_value(field, value),
        "updated_date": today.isoformat(),
    }
    return {**project, "workstreams": workstreams}


def project_progress(project: Dict[str, Any]) -> int:
    """Mean workstream percentage, rounded half up."""
    workstreams = project.get("workstreams") or []
    if not workstreams:
        return 0
    total = sum(int(ws.get("pct") or 0) for ws in workstreams)
    count = len(workstreams)
    return (2 * total + count) // (2 * count)


def project_status(project: Dict[str, Any]) -> str:
    """
    Roll workstream statuses up to one project status.

    Any At Risk workstream wins, then all Complete, then any workstream
    In Progress or Complete.
    """
    statuses = [ws.get("status") for ws in project.get("workstreams") or []]
    if STATUS_AT_RISK in statuses:
        return STATUS_AT_RISK
    complete = statuses.count(STATUS_COMPLETE)
    if statuses and complete == len(statuses):
        return STATUS_COMPLETE
    if complete > 0 or STATUS_IN_PROGRESS in statuses:
        return STATUS_IN_PROGRESS
    return STATUS_NOT_STARTED


def find_project(projects: Sequence[Dict[str, Any]], project_id: str) -> Dict[str, Any]:
    for project in projects:
        if project.get("id") == project_id:
            return project
    raise ChangeProjectNotFoundError(project_id)


def replace_project(projects: Sequence[Dict[str, Any]], updated: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [updated if project.get("id") == updated.get("id") else project for project in projects]


def project_summary(project: Dict[str, Any]) -> Dict[str, Any]:
    """Project dict plus its derived progress and status."""
    return {**project, "progress": project_progress(project), "status": project_status(project)}
