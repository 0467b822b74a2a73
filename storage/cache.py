"""
Snapshot Cache

In-memory store for the latest output of each pipeline stage.
Provides:
- Wholesale replacement per key (no partial updates)
- Publish timestamps and staleness checks
- Version counters for change detection

Nothing is persisted; contents live for the process lifetime.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class SnapshotCache:
    """
    Latest-value cache keyed by stage name.
    """

    def __init__(self, max_age_minutes: float = 5.0):
        """
        Initialize snapshot cache.

        Args:
            max_age_minutes: Age after which a snapshot counts as stale
        """
        self.max_age = timedelta(minutes=max_age_minutes)

        self._values: Dict[str, Any] = {}
        self._timestamps: Dict[str, datetime] = {}
        self._versions: Dict[str, int] = {}

    def publish(self, key: str, value: Any) -> int:
        """
        Replace the snapshot for a key.

        Returns:
            New version number for the key
        """
        self._values[key] = value
        self._timestamps[key] = datetime.now()
        self._versions[key] = self._versions.get(key, 0) + 1
        logger.debug(f"Published {key} v{self._versions[key]}")
        return self._versions[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def version(self, key: str) -> int:
        """Number of times a key has been published (0 if never)."""
        return self._versions.get(key, 0)

    def published_at(self, key: str) -> Optional[datetime]:
        return self._timestamps.get(key)

    def is_stale(self, key: str, now: Optional[datetime] = None) -> bool:
        """Check if a snapshot is missing or older than max_age."""
        timestamp = self._timestamps.get(key)
        if timestamp is None:
            return True
        now = now or datetime.now()
        return now - timestamp > self.max_age

    def clear(self) -> None:
        self._values.clear()
        self._timestamps.clear()
        self._versions.clear()
