"""
Pydantic model for the VMAlert parent resource.

Only the fields rule reconciliation consumes are modelled: rule
selectors, per-instance rule settings and pod metadata.  The VMAlert
owns every rules ConfigMap built for it and is the target of the pod
reload signal.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from rulesync.models.meta import LabelSelector, ObjectMeta

VMALERT_API_VERSION = "operator.victoriametrics.com/v1beta1"
VMALERT_KIND = "VMAlert"
VMALERT_PLURAL = "vmalerts"

DEDUPLICATE_RULES_ANNOTATION = "operator.victoriametrics.com/vmalert-deduplicate-rules"


class PodMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class VMAlertSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rule_selector: Optional[LabelSelector] = Field(None, alias="ruleSelector")
    rule_namespace_selector: Optional[LabelSelector] = Field(
        None, alias="ruleNamespaceSelector"
    )
    select_all_by_default: bool = Field(False, alias="selectAllByDefault")
    enforced_namespace_label: str = Field("", alias="enforcedNamespaceLabel")
    pod_metadata: Optional[PodMetadata] = Field(None, alias="podMetadata")
    managed_metadata: Optional[PodMetadata] = Field(None, alias="managedMetadata")


class VMAlert(BaseModel):
    """
    Parent resource of a rule reconciliation.

    Example:
        vmalert = VMAlert.model_validate(manifest)
        vmalert.pod_labels()       # selector for the reload signal
        vmalert.as_owner()         # owner references for rules ConfigMaps
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str = Field(VMALERT_API_VERSION, alias="apiVersion")
    kind: str = VMALERT_KIND
    metadata: ObjectMeta
    spec: VMAlertSpec = Field(default_factory=VMAlertSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def parent_object(self) -> str:
        """Identifier recorded in child status conditions."""
        return f"{self.metadata.name}.{self.metadata.namespace}.vmalert"

    def need_dedup_rules(self) -> bool:
        value = self.metadata.annotations.get(DEDUPLICATE_RULES_ANNOTATION, "")
        return value.lower() == "true"

    def is_unmanaged(self) -> bool:
        """True when the VMAlert selects no rule sources at all."""
        return (
            not self.spec.select_all_by_default
            and self.spec.rule_selector is None
            and self.spec.rule_namespace_selector is None
        )

    def selector_labels(self) -> dict[str, str]:
        return {
            "app.kubernetes.io/name": "vmalert",
            "app.kubernetes.io/instance": self.metadata.name,
            "app.kubernetes.io/component": "monitoring",
            "managed-by": "vm-operator",
        }

    def pod_labels(self) -> dict[str, str]:
        labels = dict(self.selector_labels())
        if self.spec.pod_metadata:
            for key, value in self.spec.pod_metadata.labels.items():
                labels.setdefault(key, value)
        return labels

    def as_owner(self) -> list[dict[str, Any]]:
        return [
            {
                "apiVersion": self.api_version,
                "kind": self.kind,
                "name": self.metadata.name,
                "uid": self.metadata.uid or "",
                "controller": True,
                "blockOwnerDeletion": True,
            }
        ]
