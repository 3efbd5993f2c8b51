"""
Diff between stored and desired rules ConfigMaps.

Matching is by name.  For a matched pair the desired object inherits the
stored annotations (desired values win on key collision) and the stored
finalizer, then data, labels and annotations are compared.  Missing and
empty maps compare equal.

Stored ConfigMaps without a desired counterpart are left alone: a
shrinking bucket count leaves orphaned ConfigMaps in the cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from rulesync.models.configmap import FINALIZER_NAME, ConfigMapArtifact


@dataclass
class DiffResult:
    to_create: list[ConfigMapArtifact] = field(default_factory=list)
    to_update: list[ConfigMapArtifact] = field(default_factory=list)
    unchanged: list[ConfigMapArtifact] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.to_create or self.to_update)


def merge_labels(base: Optional[dict[str, str]], override: Optional[dict[str, str]]) -> dict[str, str]:
    """Right-biased merge of two label or annotation maps."""
    merged = dict(base or {})
    merged.update(override or {})
    return merged


def carry_finalizer(desired: ConfigMapArtifact, current: ConfigMapArtifact) -> list[str]:
    """Finalizers for ``desired`` keeping the stored object's finalizer."""
    finalizers = list(desired.finalizers)
    if current.has_finalizer and FINALIZER_NAME not in finalizers:
        finalizers.append(FINALIZER_NAME)
    return finalizers


def _semantic_equal(a: Optional[dict[str, str]], b: Optional[dict[str, str]]) -> bool:
    return (a or {}) == (b or {})


def rules_configmap_diff(
    current: list[ConfigMapArtifact],
    desired: list[ConfigMapArtifact],
) -> DiffResult:
    """Classify each desired ConfigMap as create, update or unchanged.

    Both lists are expected sorted by name.  Objects placed in
    ``to_update`` and ``unchanged`` carry the merged annotations and
    finalizers; inputs are not modified.
    """
    result = DiffResult()
    if not desired:
        return result
    if not current:
        result.to_create = list(desired)
        return result

    for new_cm in desired:
        existing = next((cm for cm in current if cm.name == new_cm.name), None)
        if existing is None:
            result.to_create.append(new_cm)
            continue
        merged = new_cm.model_copy(
            update={
                "annotations": merge_labels(existing.annotations, new_cm.annotations),
                "finalizers": carry_finalizer(new_cm, existing),
            }
        )
        if (
            _semantic_equal(merged.data, existing.data)
            and _semantic_equal(merged.labels, existing.labels)
            and _semantic_equal(merged.annotations, existing.annotations)
        ):
            result.unchanged.append(merged)
        else:
            result.to_update.append(merged)
    return result
