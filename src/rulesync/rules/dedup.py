"""
Rule deduplication within rule groups.

Duplicates are detected per group only: the same rule may legitimately
appear in two groups (different evaluation intervals) or in two VMRules.
The first occurrence wins and relative order of surviving rules is kept.
"""

from __future__ import annotations

import logging

from rulesync.models.rules import RuleGroup, VMRule
from rulesync.rules.identity import calculate_rule_id

logger = logging.getLogger(__name__)


def deduplicate_group(group: RuleGroup, source_name: str) -> RuleGroup:
    """Return a copy of ``group`` without repeated rules."""
    seen: set[int] = set()
    rules = []
    for rule in group.rules:
        rule_id = calculate_rule_id(rule)
        if rule_id in seen:
            logger.info(
                "duplicate rule=%r found at group=%r for vmrule=%r",
                rule.expr,
                group.name,
                source_name,
            )
            continue
        seen.add(rule_id)
        rules.append(rule)
    return group.model_copy(update={"rules": rules})


def deduplicate_rules(sources: list[VMRule]) -> list[VMRule]:
    """Drop duplicate rules from every group of every source.

    Args:
        sources: Selected rule sources.  Not modified.

    Returns:
        New ``VMRule`` objects in the same order, groups in the same
        order, each group holding only the first occurrence of each rule.
    """
    out: list[VMRule] = []
    for source in sources:
        groups = [deduplicate_group(g, source.name) for g in source.spec.groups]
        spec = source.spec.model_copy(update={"groups": groups})
        out.append(source.model_copy(update={"spec": spec}))
    return out
