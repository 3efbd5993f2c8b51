"""
Kubernetes object metadata and label selector models.

Only the subset of ``metav1.ObjectMeta`` and ``metav1.LabelSelector``
that rule reconciliation reads is modelled; unknown keys are ignored
so full API objects can be validated directly.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ObjectMeta(BaseModel):
    """Identity and bookkeeping fields of a Kubernetes object."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    namespace: str = "default"
    uid: Optional[str] = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    generation: Optional[int] = None
    resource_version: Optional[str] = Field(None, alias="resourceVersion")
    deletion_timestamp: Optional[str] = Field(None, alias="deletionTimestamp")

    @property
    def is_deleting(self) -> bool:
        return bool(self.deletion_timestamp)


class LabelSelectorRequirement(BaseModel):
    """A single ``matchExpressions`` entry."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    key: str = Field(..., min_length=1)
    operator: str = Field(..., description="In, NotIn, Exists or DoesNotExist")
    values: list[str] = Field(default_factory=list)

    def matches(self, labels: dict[str, str]) -> bool:
        if self.operator == "In":
            return labels.get(self.key) in self.values
        if self.operator == "NotIn":
            return self.key not in labels or labels[self.key] not in self.values
        if self.operator == "Exists":
            return self.key in labels
        if self.operator == "DoesNotExist":
            return self.key not in labels
        raise ValueError(f"unsupported label selector operator: {self.operator}")

    def to_selector_term(self) -> str:
        if self.operator == "In":
            return f"{self.key} in ({','.join(self.values)})"
        if self.operator == "NotIn":
            return f"{self.key} notin ({','.join(self.values)})"
        if self.operator == "Exists":
            return self.key
        if self.operator == "DoesNotExist":
            return f"!{self.key}"
        raise ValueError(f"unsupported label selector operator: {self.operator}")


class LabelSelector(BaseModel):
    """
    Kubernetes label selector.

    An empty selector (no labels, no expressions) matches everything,
    mirroring API server semantics.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    match_labels: dict[str, str] = Field(default_factory=dict, alias="matchLabels")
    match_expressions: list[LabelSelectorRequirement] = Field(
        default_factory=list, alias="matchExpressions"
    )

    def matches(self, labels: Optional[dict[str, str]]) -> bool:
        labels = labels or {}
        for key, value in self.match_labels.items():
            if labels.get(key) != value:
                return False
        return all(req.matches(labels) for req in self.match_expressions)

    def to_selector_string(self) -> str:
        """Render as the ``labelSelector`` query parameter."""
        terms = [f"{k}={v}" for k, v in sorted(self.match_labels.items())]
        terms.extend(req.to_selector_term() for req in self.match_expressions)
        return ",".join(terms)


def labels_to_selector_string(labels: dict[str, Any]) -> str:
    """Render an equality-only label map as a selector string."""
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
