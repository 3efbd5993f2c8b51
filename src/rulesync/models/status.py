"""
Status patch value for a VMRule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StatusPatch:
    """Status change for one rule source."""

    namespace: str
    name: str
    current_sync_error: str
    conditions: list[dict[str, Any]] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.current_sync_error)

    def to_body(self) -> dict[str, Any]:
        """Merge-patch body for the ``status`` subresource."""
        return {
            "status": {
                "currentSyncError": self.current_sync_error,
                "conditions": self.conditions,
            }
        }
