"""Models package."""
from decision_os.models.stored_value import StoredValue

__all__ = ["StoredValue"]
