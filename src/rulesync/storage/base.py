"""
Cluster store protocol.

Defines the cluster operations rule reconciliation depends on.  Backends
translate their native failures into :mod:`rulesync.errors` types:
a missing object raises :class:`NotFoundError`, a name collision on
create raises :class:`AlreadyExistsError`, anything else raises
:class:`ClusterAPIError`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from rulesync.models.configmap import ConfigMapArtifact
from rulesync.models.status import StatusPatch

logger = logging.getLogger(__name__)

# Pod annotation bumped to make vmalert re-read its mounted rule files.
RELOAD_ANNOTATION = "configmap-sync-lastupdate-at"


def reload_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@runtime_checkable
class ClusterStore(Protocol):
    """
    Protocol defining the cluster operations used by the applier.

    All storage implementations must provide these methods.
    """

    def get_configmap(self, namespace: str, name: str) -> ConfigMapArtifact:
        """Fetch a ConfigMap by name."""
        ...

    def create_configmap(self, cm: ConfigMapArtifact) -> None:
        """Create a ConfigMap."""
        ...

    def update_configmap(self, cm: ConfigMapArtifact) -> None:
        """Replace an existing ConfigMap."""
        ...

    def patch_rule_status(self, patches: list[StatusPatch]) -> None:
        """Write status patches to VMRule objects."""
        ...

    def update_pod_annotations(self, pod_labels: dict[str, str], namespace: str) -> None:
        """Bump the reload annotation on pods matching ``pod_labels``."""
        ...


class BaseClusterStore(ABC):
    """
    Abstract base class for cluster stores.

    Provides the batched status write on top of a single-object patch.
    """

    @abstractmethod
    def get_configmap(self, namespace: str, name: str) -> ConfigMapArtifact:
        pass

    @abstractmethod
    def create_configmap(self, cm: ConfigMapArtifact) -> None:
        pass

    @abstractmethod
    def update_configmap(self, cm: ConfigMapArtifact) -> None:
        pass

    @abstractmethod
    def patch_one_rule_status(self, patch: StatusPatch) -> None:
        pass

    @abstractmethod
    def update_pod_annotations(self, pod_labels: dict[str, str], namespace: str) -> None:
        pass

    def patch_rule_status(self, patches: list[StatusPatch]) -> None:
        """Apply patches in order, stopping at the first failure."""
        for patch in patches:
            self.patch_one_rule_status(patch)
        if patches:
            logger.debug("Patched status of %d rule sources", len(patches))
