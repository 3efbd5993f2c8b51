"""
Bad-object counter for rule reconciliation.

The counter is handed to the applier as a collaborator rather than read
from a module global, so tests can pass a local stand-in.  The
OpenTelemetry implementation exports as
``operator_vmalert_bad_objects_count{controller="vmrules"}`` through
whatever MeterProvider the process has configured.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from opentelemetry import metrics

logger = logging.getLogger(__name__)

BAD_OBJECTS_METRIC = "operator_vmalert_bad_objects_count"
BAD_OBJECTS_ATTRIBUTES = {"controller": "vmrules"}


@runtime_checkable
class BadObjectsCounter(Protocol):
    """Monotonic counter of invalid rule sources observed."""

    def add(self, amount: int) -> None:
        ...


class OTelBadObjectsCounter:
    """Bad-object counter backed by an OpenTelemetry ``Counter``."""

    def __init__(self, meter: Optional[metrics.Meter] = None):
        meter = meter or metrics.get_meter("rulesync")
        self._counter = meter.create_counter(
            BAD_OBJECTS_METRIC,
            unit="1",
            description="Number of incorrect objects by controller",
        )

    def add(self, amount: int) -> None:
        if amount <= 0:
            return
        self._counter.add(amount, attributes=BAD_OBJECTS_ATTRIBUTES)
        logger.debug("%s += %d", BAD_OBJECTS_METRIC, amount)
