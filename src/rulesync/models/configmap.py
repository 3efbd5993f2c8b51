"""
ConfigMap artifact model.

A ``ConfigMapArtifact`` is the unit rule reconciliation compares against
the cluster and creates or updates.  It converts to and from the
Kubernetes API dict shape so storage backends can stay thin.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Finalizer marking objects the operator must release before deletion.
FINALIZER_NAME = "apps.victoriametrics.com/finalizer"


class ConfigMapArtifact(BaseModel):
    """One rules ConfigMap holding a bucket of rendered rule files."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    owner_references: list[dict[str, Any]] = Field(default_factory=list)
    finalizers: list[str] = Field(default_factory=list)
    data: dict[str, str] = Field(default_factory=dict)
    resource_version: Optional[str] = None
    deletion_timestamp: Optional[str] = None

    @property
    def has_finalizer(self) -> bool:
        return FINALIZER_NAME in self.finalizers

    @property
    def data_size(self) -> int:
        return sum(len(v.encode("utf-8")) for v in self.data.values())

    def to_k8s_dict(self) -> dict[str, Any]:
        """Render as a ``v1/ConfigMap`` request body."""
        metadata: dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "ownerReferences": [dict(ref) for ref in self.owner_references],
            "finalizers": list(self.finalizers),
        }
        if self.annotations:
            metadata["annotations"] = dict(self.annotations)
        if self.resource_version:
            metadata["resourceVersion"] = self.resource_version
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": metadata,
            "data": dict(self.data),
        }

    @classmethod
    def from_k8s_dict(cls, obj: dict[str, Any]) -> "ConfigMapArtifact":
        """Build from a ``v1/ConfigMap`` API dict (camelCase keys)."""
        metadata = obj.get("metadata") or {}
        return cls(
            name=metadata["name"],
            namespace=metadata.get("namespace") or "default",
            labels=metadata.get("labels") or {},
            annotations=metadata.get("annotations") or {},
            owner_references=metadata.get("ownerReferences") or [],
            finalizers=metadata.get("finalizers") or [],
            data=obj.get("data") or {},
            resource_version=metadata.get("resourceVersion"),
            deletion_timestamp=metadata.get("deletionTimestamp"),
        )
