"""
Custom exceptions for Decision Accountability OS.

Provides a hierarchy of exceptions with error codes for consistent error handling.
The text parsers never raise; these are for the service and API layers.
"""
from typing import Optional, Dict, Any


class DecisionOSError(Exception):
    """
    Base exception for all Decision Accountability OS errors.

    Attributes:
        error_code: Unique error code (e.g., DAO-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "DAO-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Scan and parsing errors (DAO-1XX)
class NoDatasetsError(DecisionOSError):
    """A scan was requested with nothing to scan."""
    error_code = "DAO-100"
    http_status = 400

    def __init__(self, **kwargs):
        super().__init__("Upload at least one data source before running a scan", **kwargs)


class UnknownScanKindError(DecisionOSError):
    """Scan kind is neither operational nor revenue."""
    error_code = "DAO-101"
    http_status = 404

    def __init__(self, kind: str, **kwargs):
        message = f"Unknown scan kind '{kind}'"
        super().__init__(message, details={"kind": kind}, **kwargs)


class DatasetDecodeError(DecisionOSError):
    """An uploaded file could not be decoded."""
    error_code = "DAO-102"
    http_status = 422

    def __init__(self, filename: str, reason: str, **kwargs):
        message = f"Could not read {filename}"
        super().__init__(message, details={"filename": filename, "reason": reason}, **kwargs)


class BriefParseError(DecisionOSError):
    """Executive brief response was not the expected JSON."""
    error_code = "DAO-110"
    http_status = 502

    def __init__(self, reason: str, raw_text: str = "", **kwargs):
        self.raw_text = raw_text
        super().__init__(
            f"Could not read executive brief: {reason}",
            details={"raw_text": raw_text},
            **kwargs,
        )


# Journal and tracker errors (DAO-3XX)
class DecisionNotFoundError(DecisionOSError):
    """Decision journal entry not found."""
    error_code = "DAO-301"
    http_status = 404

    def __init__(self, decision_id: str, **kwargs):
        message = f"Decision {decision_id} not found"
        super().__init__(message, details={"decision_id": decision_id}, **kwargs)


class ChangeProjectNotFoundError(DecisionOSError):
    """Change project not found."""
    error_code = "DAO-302"
    http_status = 404

    def __init__(self, project_id: str, **kwargs):
        message = f"Change project {project_id} not found"
        super().__init__(message, details={"project_id": project_id}, **kwargs)


class WorkstreamNotFoundError(DecisionOSError):
    """Workstream index outside the project's workstreams."""
    error_code = "DAO-303"
    http_status = 404

    def __init__(self, project_id: str, index: int, **kwargs):
        message = f"Workstream {index} not found in {project_id}"
        super().__init__(message, details={"project_id": project_id, "index": index}, **kwargs)


# Validation Errors (DAO-7XX)
class ValidationError(DecisionOSError):
    """Input validation failed."""
    error_code = "DAO-700"
    http_status = 400

    def __init__(self, message: str = "Validation failed", errors: list = None, **kwargs):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


# Storage Errors (DAO-8XX)
class StorageError(DecisionOSError):
    """Persisted state could not be read or written."""
    error_code = "DAO-800"
    http_status = 500

    def __init__(self, message: str = "Storage operation failed", **kwargs):
        super().__init__(message, **kwargs)


# External Service Errors (DAO-9XX)
class LLMServiceError(DecisionOSError):
    """Text-completion service call failed."""
    error_code = "DAO-900"
    http_status = 502

    def __init__(self, message: str = None, **kwargs):
        msg = message or "Text-completion service is unavailable"
        details = kwargs.pop("details", {})
        details.setdefault("service", "anthropic")
        super().__init__(msg, details=details, **kwargs)


class LLMNotConfiguredError(LLMServiceError):
    """Live mode requested without an API key."""
    error_code = "DAO-901"
    http_status = 500

    def __init__(self, **kwargs):
        super().__init__(
            "API key not configured. Add your ANTHROPIC_API_KEY to the .env file and restart the server.",
            **kwargs,
        )


class LLMRateLimitedError(LLMServiceError):
    """Upstream returned 429."""
    error_code = "DAO-902"
    http_status = 429

    def __init__(self, **kwargs):
        super().__init__("Too many requests. Please wait a moment and try again.", **kwargs)


class LLMTimeoutError(LLMServiceError):
    """Upstream did not answer within the configured timeout."""
    error_code = "DAO-903"
    http_status = 504

    def __init__(self, timeout_seconds: float, **kwargs):
        message = f"Request timed out ({int(timeout_seconds)}s). Try a shorter question."
        super().__init__(message, details={"timeout_seconds": timeout_seconds}, **kwargs)


class LLMUpstreamError(LLMServiceError):
    """Upstream returned a non-success status or an error event."""
    error_code = "DAO-904"

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, details={"status_code": status_code}, **kwargs)
        if status_code and 400 <= status_code < 600:
            self.http_status = status_code
