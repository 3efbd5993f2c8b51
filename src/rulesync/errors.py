"""
Exception hierarchy for rule reconciliation.

Every error raised by rulesync derives from :class:`RuleSyncError` so the
outer control loop can requeue on a single type.  Per-object failures
(:class:`RuleValidationError`, :class:`RuleRenderError`) never escape the
render stage; they are recorded on the offending rule source instead.
"""

from __future__ import annotations

from typing import Optional


class RuleSyncError(Exception):
    """Base class for all rulesync errors."""


class SelectionError(RuleSyncError):
    """Rule sources could not be enumerated."""


class RuleValidationError(RuleSyncError):
    """A rule source failed structural validation."""


class RuleRenderError(RuleSyncError):
    """A rule source could not be serialized into a rule file."""


class ClusterAPIError(RuleSyncError):
    """A cluster API call failed.

    Attributes:
        status: HTTP status code reported by the API server, if any.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(ClusterAPIError):
    """The requested object does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status=404)


class AlreadyExistsError(ClusterAPIError):
    """An object with the same name already exists."""

    def __init__(self, message: str):
        super().__init__(message, status=409)


class StatusUpdateError(RuleSyncError):
    """Writing rule source statuses failed."""


class ConfigMapWriteError(RuleSyncError):
    """Creating or updating a rules ConfigMap failed."""


class ReconcileCancelled(RuleSyncError):
    """The reconciliation was cancelled between stages."""
