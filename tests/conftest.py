"""
Pytest configuration and fixtures for rulesync tests.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import pytest

from rulesync.config import reset_config
from rulesync.loader import RuleSourceLoader
from rulesync.models.meta import LabelSelector, ObjectMeta
from rulesync.models.rules import Rule, RuleGroup, VMRule, VMRuleSpec
from rulesync.models.vmalert import VMAlert, VMAlertSpec


# ============================================================================
# Global state
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch):
    """Isolate tests from RULESYNC_* env vars, the config singleton and the loader cache."""
    for var in (
        "RULESYNC_MAX_CONFIGMAP_DATA_SIZE",
        "RULESYNC_WATCH_NAMESPACE",
        "RULESYNC_KUBECONFIG",
        "RULESYNC_LOG_LEVEL",
        "RULESYNC_LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    RuleSourceLoader.clear_cache()
    yield
    reset_config()
    RuleSourceLoader.clear_cache()
    # configure_logging detaches the package logger from the root logger
    logger = logging.getLogger("rulesync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Collaborators
# ============================================================================


class FakeCounter:
    """Records every increment of the bad-objects counter."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def add(self, amount: int) -> None:
        self.calls.append(amount)

    @property
    def total(self) -> int:
        return sum(self.calls)


@pytest.fixture
def counter() -> FakeCounter:
    return FakeCounter()


# ============================================================================
# Model factories
# ============================================================================


def _alert(name: str = "HighLatency", expr: str = "latency_seconds > 1", **kwargs: Any) -> Rule:
    return Rule(alert=name, expr=expr, **kwargs)


@pytest.fixture
def make_rule() -> Callable[..., Rule]:
    """Factory for alerting rules; pass ``record=...`` for a recording rule."""

    def _make(name: str = "HighLatency", expr: str = "latency_seconds > 1", **kwargs: Any) -> Rule:
        if "record" in kwargs:
            return Rule(expr=expr, **kwargs)
        return _alert(name, expr, **kwargs)

    return _make


@pytest.fixture
def make_vmrule() -> Callable[..., VMRule]:
    """Factory for VMRule objects with one group by default."""

    def _make(
        name: str = "r1",
        namespace: str = "default",
        groups: Optional[list[RuleGroup]] = None,
        labels: Optional[dict[str, str]] = None,
        **meta: Any,
    ) -> VMRule:
        if groups is None:
            groups = [RuleGroup(name="g1", rules=[_alert()])]
        return VMRule(
            metadata=ObjectMeta(name=name, namespace=namespace, labels=labels or {}, **meta),
            spec=VMRuleSpec(groups=groups),
        )

    return _make


@pytest.fixture
def make_vmalert() -> Callable[..., VMAlert]:
    """Factory for VMAlert objects selecting every VMRule by default."""

    def _make(
        name: str = "example",
        namespace: str = "default",
        uid: str = "uid-1",
        select_all: bool = True,
        rule_selector: Optional[LabelSelector] = None,
        rule_namespace_selector: Optional[LabelSelector] = None,
        enforced_namespace_label: str = "",
        annotations: Optional[dict[str, str]] = None,
    ) -> VMAlert:
        return VMAlert(
            metadata=ObjectMeta(
                name=name, namespace=namespace, uid=uid, annotations=annotations or {}
            ),
            spec=VMAlertSpec(
                select_all_by_default=select_all,
                rule_selector=rule_selector,
                rule_namespace_selector=rule_namespace_selector,
                enforced_namespace_label=enforced_namespace_label,
            ),
        )

    return _make
