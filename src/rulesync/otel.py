"""
OTel span event emission helpers for rule reconciliation.

Each helper logs a summary line and adds an event to the current span
when one is recording.  The applier wraps a reconciliation in a
``rulesync.reconcile_rules`` span so these events land on it.

Usage::

    from rulesync.otel import emit_selection_summary, emit_diff_summary

    emit_selection_summary(vmalert, result)
    emit_diff_summary(vmalert, diff)
"""

from __future__ import annotations

import logging

from opentelemetry import trace as otel_trace

from rulesync.models.vmalert import VMAlert
from rulesync.rules.diff import DiffResult
from rulesync.rules.render import SelectionResult

logger = logging.getLogger(__name__)

tracer = otel_trace.get_tracer("rulesync")


def add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_selection_summary(vmalert: VMAlert, result: SelectionResult) -> None:
    """Event name: ``rules.selection``"""
    attrs: dict[str, str | int | float | bool] = {
        "vmalert.name": vmalert.name,
        "vmalert.namespace": vmalert.namespace,
        "rules.selected": len(result.valid) + len(result.bad),
        "rules.valid": len(result.valid),
        "rules.invalid": len(result.bad),
        "rules.files": len(result.rule_files),
        "rules.default_injected": result.used_default,
    }
    if result.valid or result.bad:
        logger.info(
            "selected Rules count=%d, invalid rules count=%d, namespaced names %s",
            len(result.valid) + len(result.bad),
            len(result.bad),
            ",".join(r.namespaced_name for r in result.valid + result.bad),
        )
    for bad in result.bad:
        logger.warning(
            "vmrule %s is invalid: %s", bad.namespaced_name, bad.status.current_sync_error
        )
    add_span_event("rules.selection", attrs)


def emit_diff_summary(vmalert: VMAlert, diff: DiffResult) -> None:
    """Event name: ``rules.configmaps.diff``"""
    attrs: dict[str, str | int | float | bool] = {
        "vmalert.name": vmalert.name,
        "configmaps.create": len(diff.to_create),
        "configmaps.update": len(diff.to_update),
        "configmaps.unchanged": len(diff.unchanged),
    }
    logger.debug(
        "rules configmaps diff for %s: create=%d update=%d unchanged=%d",
        vmalert.name,
        len(diff.to_create),
        len(diff.to_update),
        len(diff.unchanged),
    )
    add_span_event("rules.configmaps.diff", attrs)


def emit_reload_failed(vmalert: VMAlert, error: Exception) -> None:
    """Event name: ``rules.reload.failed``"""
    logger.error("failed to update vmalert pod cm-sync annotation: %s", error)
    add_span_event(
        "rules.reload.failed",
        {"vmalert.name": vmalert.name, "error": str(error)},
    )
