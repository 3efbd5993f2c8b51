"""
Data models for rule reconciliation.

Public API::

    from rulesync.models import (
        # Kubernetes metadata
        ObjectMeta,
        LabelSelector,
        # Rule sources
        Rule,
        RuleGroup,
        VMRule,
        VMRuleSpec,
        StatusPatch,
        # Parent resource
        VMAlert,
        # Artifacts
        ConfigMapArtifact,
        FINALIZER_NAME,
    )
"""

from rulesync.models.configmap import FINALIZER_NAME, ConfigMapArtifact
from rulesync.models.meta import LabelSelector, LabelSelectorRequirement, ObjectMeta
from rulesync.models.rules import (
    Rule,
    RuleGroup,
    RuleSourceStatus,
    VMRule,
    VMRuleSpec,
)
from rulesync.models.status import StatusPatch
from rulesync.models.vmalert import VMAlert, VMAlertSpec

__all__ = [
    # Metadata
    "ObjectMeta",
    "LabelSelector",
    "LabelSelectorRequirement",
    # Rule sources
    "Rule",
    "RuleGroup",
    "RuleSourceStatus",
    "VMRule",
    "VMRuleSpec",
    "StatusPatch",
    # Parent
    "VMAlert",
    "VMAlertSpec",
    # Artifacts
    "ConfigMapArtifact",
    "FINALIZER_NAME",
]
