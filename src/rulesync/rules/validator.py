"""
Structural validation of VMRule objects.

Checks what vmalert would reject when loading a rule file: missing or
conflicting rule kind, empty or unbalanced expressions, malformed
durations, metric and label names, and duplicate group names.
``validate_rule_source`` raises :class:`RuleValidationError` with a
message naming the first offending group and rule; the caller records
that message on the object's status.

Expressions of Prometheus-compatible groups (no ``type``, ``prometheus``
or ``vm``) are parsed with ``promql_parser`` after a lexical pass that
gives precise bracket and quote errors.  Graphite and other datasource
types only get the lexical pass.
"""

from __future__ import annotations

import re
from typing import Optional

import promql_parser

from rulesync.errors import RuleValidationError
from rulesync.models.rules import Rule, RuleGroup, VMRule

_DURATION_RE = re.compile(
    r"^(-)?((\d+(\.\d+)?)(ms|s|m|h|d|w|y|i))+$"
)
_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_BRACKETS = {")": "(", "]": "[", "}": "{"}
_QUOTES = {'"', "'", "`"}

PROMQL_GROUP_TYPES = (None, "prometheus", "vm")


def check_duration(value: Optional[str], field: str) -> None:
    if value is None:
        return
    if not _DURATION_RE.match(value.strip()):
        raise RuleValidationError(f"invalid {field} duration {value!r}")


def check_expression(expr: str, group_type: Optional[str] = None) -> None:
    """Reject expressions vmalert would fail to parse.

    Args:
        expr: Rule expression.
        group_type: Datasource type of the enclosing group; only
            Prometheus-compatible types are parsed as PromQL.

    Raises:
        RuleValidationError: On an empty, unbalanced or unparsable expression.
    """
    _check_lexical(expr)
    if group_type not in PROMQL_GROUP_TYPES:
        return
    try:
        promql_parser.parse(expr)
    except ValueError as e:
        raise RuleValidationError(f"cannot parse expression {expr!r}: {e}") from e


def _check_lexical(expr: str) -> None:
    if not expr.strip():
        raise RuleValidationError("expression cannot be empty")

    stack: list[str] = []
    quote: Optional[str] = None
    escaped = False
    for pos, ch in enumerate(expr):
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\" and quote != "`":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in _QUOTES:
            quote = ch
        elif ch in "([{":
            stack.append(ch)
        elif ch in _BRACKETS:
            if not stack or stack[-1] != _BRACKETS[ch]:
                raise RuleValidationError(
                    f"cannot parse expression {expr!r}: unexpected {ch!r} at position {pos}"
                )
            stack.pop()
    if quote:
        raise RuleValidationError(f"cannot parse expression {expr!r}: unterminated string literal")
    if stack:
        raise RuleValidationError(f"cannot parse expression {expr!r}: unclosed {stack[-1]!r}")


def _check_labels(labels: Optional[dict[str, str]], where: str) -> None:
    for key in labels or {}:
        if not _LABEL_NAME_RE.match(key):
            raise RuleValidationError(f"invalid label name {key!r} in {where}")


def validate_rule(rule: Rule, group_type: Optional[str] = None) -> None:
    if rule.record and rule.alert:
        raise RuleValidationError(
            f"either `record` or `alert` must be set, got both: record={rule.record!r} alert={rule.alert!r}"
        )
    if not rule.record and not rule.alert:
        raise RuleValidationError("either `record` or `alert` must be set")
    try:
        check_expression(rule.expr, group_type)
    except RuleValidationError as e:
        raise RuleValidationError(f"invalid expression for rule {rule.name!r}: {e}") from e

    if rule.record:
        if not _METRIC_NAME_RE.match(rule.record):
            raise RuleValidationError(f"invalid recording rule name {rule.record!r}")
        if rule.for_ is not None:
            raise RuleValidationError(f"recording rule {rule.record!r} cannot have `for`")
        if rule.keep_firing_for is not None:
            raise RuleValidationError(
                f"recording rule {rule.record!r} cannot have `keep_firing_for`"
            )
        if rule.annotations:
            raise RuleValidationError(
                f"recording rule {rule.record!r} cannot have annotations"
            )
    check_duration(rule.for_, "for")
    check_duration(rule.keep_firing_for, "keep_firing_for")
    _check_labels(rule.labels, f"rule {rule.name!r}")
    if rule.update_entries_limit is not None and rule.update_entries_limit < 0:
        raise RuleValidationError(
            f"update_entries_limit cannot be negative for rule {rule.name!r}"
        )


def validate_group(group: RuleGroup) -> None:
    if not group.name:
        raise RuleValidationError("group name cannot be empty")
    check_duration(group.interval, "interval")
    check_duration(group.eval_offset, "eval_offset")
    check_duration(group.eval_delay, "eval_delay")
    if group.limit is not None and group.limit < 0:
        raise RuleValidationError(f"group {group.name!r}: limit cannot be negative")
    if group.concurrency is not None and group.concurrency < 0:
        raise RuleValidationError(f"group {group.name!r}: concurrency cannot be negative")
    _check_labels(group.labels, f"group {group.name!r}")
    for idx, rule in enumerate(group.rules):
        try:
            validate_rule(rule, group.type)
        except RuleValidationError as e:
            raise RuleValidationError(f"group {group.name!r} rule #{idx}: {e}") from e


def validate_rule_source(source: VMRule) -> None:
    """Validate a VMRule, raising on the first problem found.

    Raises:
        RuleValidationError: With a message suitable for the object's
            ``status.currentSyncError``.
    """
    if not source.spec.groups:
        raise RuleValidationError("at least one rule group is required")
    names: set[str] = set()
    for group in source.spec.groups:
        if group.name in names:
            raise RuleValidationError(f"duplicate group name {group.name!r}")
        names.add(group.name)
        validate_group(group)
