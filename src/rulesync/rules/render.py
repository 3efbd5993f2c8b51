"""
Rule-file rendering with per-object error isolation.

``render_rule_sources`` turns a batch of selected VMRules into a mapping
of rule-file name to YAML content.  Objects that fail validation or
serialization are routed to the ``bad`` partition with their error text
recorded on a copy of the object; they never abort the batch and never
contribute a file.

Usage::

    from rulesync.rules.render import render_rule_sources

    result = render_rule_sources(vmrules, enforced_namespace_label="namespace")
    for name, content in result.rule_files.items():
        ...
    for bad in result.bad:
        print(bad.namespaced_name, bad.status.current_sync_error)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import yaml

from rulesync.errors import RuleRenderError, RuleValidationError
from rulesync.models.rules import VMRule, VMRuleSpec
from rulesync.rules.dedup import deduplicate_rules
from rulesync.rules.validator import validate_rule_source

logger = logging.getLogger(__name__)

DEFAULT_RULE_FILE_NAME = "default-vmalert.yaml"

# vmalert refuses to start without at least one rule file.
DEFAULT_RULE_FILE_CONTENT = """
groups:
- name: vmAlertGroup
  rules:
     - alert: error writing to remote
       for: 1m
       expr: rate(vmalert_remotewrite_errors_total[1m]) > 0
       labels:
         host: "{{ $labels.instance }}"
       annotations:
         summary: " error writing to remote writer from vmaler{{ $value|humanize }}"
         description: "error writing to remote writer from vmaler {{$labels}}"
         back: "error rate is ok at vmalert "
"""


@dataclass
class SelectionResult:
    """Output of the render stage."""

    rule_files: dict[str, str] = field(default_factory=dict)
    valid: list[VMRule] = field(default_factory=list)
    bad: list[VMRule] = field(default_factory=list)

    @property
    def used_default(self) -> bool:
        return list(self.rule_files) == [DEFAULT_RULE_FILE_NAME] and not self.valid


def generate_content(spec: VMRuleSpec, enforced_ns_label: str, namespace: str) -> str:
    """Serialize a VMRule spec into rule-file YAML.

    When ``enforced_ns_label`` is non-empty every rule in every group gets
    ``labels[enforced_ns_label] = namespace``, overwriting any value the
    rule already carried.  The input spec is not modified.

    Raises:
        RuleRenderError: If ``spec`` cannot be serialized.
    """
    spec = spec.model_copy(deep=True)
    if enforced_ns_label:
        for group in spec.groups:
            for rule in group.rules:
                if rule.labels is None:
                    rule.labels = {}
                rule.labels[enforced_ns_label] = namespace
    try:
        document = spec.model_dump(mode="json", by_alias=True, exclude_none=True)
        return yaml.safe_dump(document, default_flow_style=False, allow_unicode=True)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        raise RuleRenderError(f"cannot marshal content for cm rule generation: {e}") from e


def _mark_bad(source: VMRule, message: str) -> VMRule:
    status = source.status.model_copy(update={"current_sync_error": message})
    return source.model_copy(update={"status": status})


def _mark_valid(source: VMRule) -> VMRule:
    status = source.status.model_copy(update={"current_sync_error": ""})
    return source.model_copy(update={"status": status})


def render_rule_sources(
    sources: list[VMRule],
    *,
    enforced_namespace_label: str = "",
    dedup: bool = False,
) -> SelectionResult:
    """Validate, optionally deduplicate and render a batch of VMRules.

    Args:
        sources: Selected, non-deleting rule sources.
        enforced_namespace_label: Label key to force to each source's
            namespace; empty disables enforcement.
        dedup: Drop duplicate rules within each group first.

    Returns:
        A ``SelectionResult``.  ``rule_files`` always has at least one
        entry: when nothing valid was rendered the default rule file is
        injected (without affecting ``valid``/``bad``).
    """
    if dedup:
        logger.info("deduplicating vmalert rules")
        sources = deduplicate_rules(sources)

    result = SelectionResult()
    for source in sources:
        try:
            validate_rule_source(source)
        except RuleValidationError as e:
            result.bad.append(_mark_bad(source, str(e)))
            continue
        try:
            content = generate_content(source.spec, enforced_namespace_label, source.namespace)
        except RuleRenderError as e:
            result.bad.append(
                _mark_bad(source, f"cannot generate content for rule: {source.name}, err :{e}")
            )
            continue
        result.valid.append(_mark_valid(source))
        result.rule_files[source.rule_file_name] = content

    if not result.rule_files:
        result.rule_files[DEFAULT_RULE_FILE_NAME] = DEFAULT_RULE_FILE_CONTENT
    return result
