"""
Rule source selection.

Resolves which VMRules a VMAlert consumes from its two selectors:

- no namespace selector and no rule selector: every VMRule when
  ``selectAllByDefault`` is set, nothing otherwise;
- rule selector only: matching VMRules in the VMAlert's own namespace;
- namespace selector set: matching VMRules in every matching namespace
  (a missing rule selector matches all VMRules there).

A configured watch namespace narrows every case to that namespace.
Objects being deleted are never returned.

Backends only provide two listing primitives, so the Kubernetes and
in-memory selectors share these semantics exactly.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from rulesync.models.meta import LabelSelector
from rulesync.models.rules import VMRule
from rulesync.models.vmalert import VMAlert

logger = logging.getLogger(__name__)

# list_namespaces(selector) -> namespace names
ListNamespaces = Callable[[LabelSelector], list[str]]
# list_rules(namespace or None for cluster-wide, selector) -> VMRules
ListRules = Callable[[Optional[str], Optional[LabelSelector]], list[VMRule]]


@runtime_checkable
class RuleSourceSelector(Protocol):
    """Returns the VMRules visible to a VMAlert."""

    def select_sources(self, vmalert: VMAlert) -> list[VMRule]:
        ...


def resolve_namespaces(
    vmalert: VMAlert,
    list_namespaces: ListNamespaces,
    watch_namespace: Optional[str] = None,
) -> Optional[list[Optional[str]]]:
    """Namespaces to list VMRules in.

    Returns ``None`` when nothing should be selected, and ``[None]`` for a
    cluster-wide listing.
    """
    spec = vmalert.spec
    if spec.rule_namespace_selector is None and spec.rule_selector is None:
        if not spec.select_all_by_default:
            return None
        return [watch_namespace]
    if spec.rule_namespace_selector is None:
        if watch_namespace and watch_namespace != vmalert.namespace:
            return []
        return [vmalert.namespace]
    namespaces = list_namespaces(spec.rule_namespace_selector)
    if watch_namespace:
        namespaces = [ns for ns in namespaces if ns == watch_namespace]
    return list(namespaces)


def select_rule_sources(
    vmalert: VMAlert,
    list_namespaces: ListNamespaces,
    list_rules: ListRules,
    watch_namespace: Optional[str] = None,
) -> list[VMRule]:
    """Select non-deleting VMRules for ``vmalert``, sorted by namespace/name."""
    namespaces = resolve_namespaces(vmalert, list_namespaces, watch_namespace)
    if not namespaces:
        return []

    selected: list[VMRule] = []
    for namespace in namespaces:
        for rule in list_rules(namespace, vmalert.spec.rule_selector):
            if rule.metadata.is_deleting:
                logger.debug("skipping vmrule %s: being deleted", rule.namespaced_name)
                continue
            selected.append(rule)
    selected.sort(key=lambda r: (r.namespace, r.name))
    return selected


class StaticRuleSelector:
    """
    Selects from a fixed list of VMRules.

    Example:
        selector = StaticRuleSelector(rules, namespace_labels={"team-a": {"env": "prod"}})
        sources = selector.select_sources(vmalert)
    """

    def __init__(
        self,
        rules: list[VMRule],
        namespace_labels: Optional[dict[str, dict[str, str]]] = None,
        watch_namespace: Optional[str] = None,
    ):
        self.rules = list(rules)
        self.namespace_labels = dict(namespace_labels or {})
        for rule in self.rules:
            self.namespace_labels.setdefault(rule.namespace, {})
        self.watch_namespace = watch_namespace

    def _list_namespaces(self, selector: LabelSelector) -> list[str]:
        return sorted(ns for ns, labels in self.namespace_labels.items() if selector.matches(labels))

    def _list_rules(self, namespace: Optional[str], selector: Optional[LabelSelector]) -> list[VMRule]:
        return [
            rule.model_copy(deep=True)
            for rule in self.rules
            if (namespace is None or rule.namespace == namespace)
            and (selector is None or selector.matches(rule.metadata.labels))
        ]

    def select_sources(self, vmalert: VMAlert) -> list[VMRule]:
        return select_rule_sources(
            vmalert, self._list_namespaces, self._list_rules, self.watch_namespace
        )
