"""
Pydantic v2 models for VMRule custom resources.

A ``VMRule`` holds named groups of alerting and recording rules.  Field
names follow the rule-file format consumed by vmalert (snake_case), so
``VMRuleSpec.model_dump(by_alias=True, exclude_none=True)`` is already
the document written into a rule file.  ``for`` is a Python keyword and
is exposed as ``for_``.

Rule and group models use ``extra="allow"`` so settings this module does
not know about are carried through to the rendered file untouched.
Structural checks live in :mod:`rulesync.rules.validator` rather than in
model validators, so one malformed object cannot abort a whole batch.

Usage::

    from rulesync.models.rules import VMRule

    rule = VMRule.model_validate(yaml.safe_load(manifest))
    print(rule.namespaced_name, len(rule.spec.groups))
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rulesync.models.meta import ObjectMeta

VMRULE_API_GROUP = "operator.victoriametrics.com"
VMRULE_API_VERSION = "v1beta1"
VMRULE_PLURAL = "vmrules"
VMRULE_KIND = "VMRule"


class Rule(BaseModel):
    """A single recording (``record``) or alerting (``alert``) rule."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    record: Optional[str] = None
    alert: Optional[str] = None
    expr: str = ""
    for_: Optional[str] = Field(None, alias="for")
    keep_firing_for: Optional[str] = None
    labels: Optional[dict[str, str]] = None
    annotations: Optional[dict[str, str]] = None
    debug: Optional[bool] = None
    update_entries_limit: Optional[int] = None

    @property
    def is_recording(self) -> bool:
        return bool(self.record)

    @property
    def name(self) -> str:
        return (self.record if self.is_recording else self.alert) or ""


class RuleGroup(BaseModel):
    """Named, ordered collection of rules evaluated together."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    interval: Optional[str] = None
    rules: list[Rule] = Field(default_factory=list)
    limit: Optional[int] = None
    concurrency: Optional[int] = None
    eval_offset: Optional[str] = None
    eval_delay: Optional[str] = None
    eval_alignment: Optional[bool] = None
    labels: Optional[dict[str, str]] = None
    params: Optional[dict[str, list[str]]] = None
    type: Optional[str] = None
    tenant: Optional[str] = None
    headers: Optional[list[str]] = None
    notifier_headers: Optional[list[str]] = None


class VMRuleSpec(BaseModel):
    """Rule-file document: a list of rule groups."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    groups: list[RuleGroup] = Field(default_factory=list)


class RuleSourceStatus(BaseModel):
    """Status subresource of a VMRule."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_sync_error: str = Field("", alias="currentSyncError")
    conditions: list[dict[str, Any]] = Field(default_factory=list)


class VMRule(BaseModel):
    """A rule source object selected by one or more VMAlerts."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str = Field(
        f"{VMRULE_API_GROUP}/{VMRULE_API_VERSION}", alias="apiVersion"
    )
    kind: str = VMRULE_KIND
    metadata: ObjectMeta
    spec: VMRuleSpec = Field(default_factory=VMRuleSpec)
    status: RuleSourceStatus = Field(default_factory=RuleSourceStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def namespaced_name(self) -> str:
        return f"{self.metadata.namespace}/{self.metadata.name}"

    @property
    def rule_file_name(self) -> str:
        return f"{self.metadata.namespace}-{self.metadata.name}.yaml"
