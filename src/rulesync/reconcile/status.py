"""
Status patches for selected rule sources.

A VMRule may be selected by several VMAlerts at once.  Each parent owns
one condition on the child (type ``<parent-object>Ready``); building a
patch replaces only that condition and keeps the others, so parents do
not overwrite each other's results.

Patches are plain values: the render stage stays pure and a storage
backend applies them with :meth:`ClusterStore.patch_rule_status`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from rulesync.models.rules import VMRule
from rulesync.models.status import StatusPatch

CONDITION_TYPE_SUFFIX = "Ready"
REASON_APPLIED = "ConfigParsedAndApplied"
REASON_PARSING_ERROR = "ConfigParsingError"


def now_rfc3339() -> str:
    """Current UTC time as an RFC 3339 timestamp with second precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_status_patch(
    parent_object: str,
    source: VMRule,
    now: Callable[[], str] = now_rfc3339,
) -> StatusPatch:
    """Build the status patch recording ``source``'s sync result for a parent."""
    error = source.status.current_sync_error
    condition_type = f"{parent_object}{CONDITION_TYPE_SUFFIX}"
    status = "False" if error else "True"

    previous: Optional[dict[str, Any]] = None
    conditions: list[dict[str, Any]] = []
    for cond in source.status.conditions:
        if cond.get("type") == condition_type:
            previous = cond
        else:
            conditions.append(dict(cond))

    transition = now()
    if previous and previous.get("status") == status and previous.get("lastTransitionTime"):
        transition = previous["lastTransitionTime"]

    condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": REASON_PARSING_ERROR if error else REASON_APPLIED,
        "message": error,
        "lastTransitionTime": transition,
    }
    if source.metadata.generation is not None:
        condition["observedGeneration"] = source.metadata.generation
    conditions.append(condition)

    return StatusPatch(
        namespace=source.namespace,
        name=source.name,
        current_sync_error=error,
        conditions=conditions,
    )


def build_status_patches(
    parent_object: str,
    sources: list[VMRule],
    now: Callable[[], str] = now_rfc3339,
) -> list[StatusPatch]:
    return [build_status_patch(parent_object, s, now) for s in sources]
