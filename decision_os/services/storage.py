"""
Key-value persistence for application state.

Values are JSON documents stored whole under the keys below. Reads of a
missing key return the caller's default.
"""
import copy
from typing import Any, Iterable, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from decision_os.exceptions import StorageError
from decision_os.models.stored_value import StoredValue

logger = structlog.get_logger(__name__)

KEY_PROFILE = "dao-profile"
KEY_SCAN = "dao-scan"
KEY_REVENUE_SCAN = "dao-revenue-scan"
KEY_RESOLVED_FINDINGS = "dao-resolved-findings"
KEY_JOURNAL = "dao-journal"
KEY_AUDIT_LOG = "dao-audit-log"
KEY_CHANGE_PROJECTS = "dao-change-projects"
KEY_DECISION_PROFILE = "dao-decision-profile"
KEY_DATASETS_META = "dao-datasets-meta"
KEY_DATA_SUMMARY = "dao-data-summary"

ALL_KEYS = (
    KEY_PROFILE,
    KEY_SCAN,
    KEY_REVENUE_SCAN,
    KEY_RESOLVED_FINDINGS,
    KEY_JOURNAL,
    KEY_AUDIT_LOG,
    KEY_CHANGE_PROJECTS,
    KEY_DECISION_PROFILE,
    KEY_DATASETS_META,
    KEY_DATA_SUMMARY,
)


class KeyValueStore:
    """
    JSON documents keyed by name, backed by the stored_values table.

    Args:
        db: Database session owned by the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: Any = None) -> Any:
        try:
            row = self.db.get(StoredValue, key)
        except SQLAlchemyError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            raise StorageError(f"Could not read {key}", details={"key": key})
        if row is None or row.value is None:
            return default
        # Copy so in-place edits never touch the tracked JSON value
        return copy.deepcopy(row.value)

    def get_list(self, key: str) -> List[Any]:
        value = self.get(key, [])
        return value if isinstance(value, list) else []

    def set(self, key: str, value: Any) -> None:
        try:
            row = self.db.get(StoredValue, key)
            if row is None:
                self.db.add(StoredValue(key=key, value=value))
            else:
                row.value = value
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Could not write {key}", details={"key": key})
        logger.debug("storage_write", key=key)

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        try:
            self.db.query(StoredValue).filter(StoredValue.key.in_(keys)).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("storage_delete_failed", keys=keys, error=str(e))
            raise StorageError("Could not delete stored values", details={"keys": keys})

    def append(self, key: str, item: Any, limit: Optional[int] = None) -> List[Any]:
        """Append to a stored list, keeping at most the last `limit` items."""
        items = self.get_list(key)
        items.append(item)
        if limit is not None:
            items = items[-limit:]
        self.set(key, items)
        return items

    def reset_all(self) -> None:
        """Delete every piece of application state."""
        self.delete_many(ALL_KEYS)
        logger.info("storage_reset", keys=len(ALL_KEYS))
