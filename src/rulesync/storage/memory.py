"""
In-memory cluster store.

Keeps ConfigMaps, rule statuses and reload signals in dicts.  Used by
the offline ``rulesync render`` command and by tests.  Individual
operations can be made to fail by registering an exception in
``failures`` under ``"<operation>:<name>"`` (e.g. ``"create:vm-a-rulefiles-1"``,
``"status:team-a/r1"``, ``"reload"``).
"""

from __future__ import annotations

import logging
from typing import Optional

from rulesync.errors import AlreadyExistsError, NotFoundError
from rulesync.models.configmap import ConfigMapArtifact
from rulesync.models.status import StatusPatch
from rulesync.storage.base import RELOAD_ANNOTATION, BaseClusterStore, reload_timestamp

logger = logging.getLogger(__name__)


class InMemoryClusterStore(BaseClusterStore):
    """Dict-backed store recording every write."""

    def __init__(self, configmaps: Optional[list[ConfigMapArtifact]] = None):
        self.configmaps: dict[tuple[str, str], ConfigMapArtifact] = {}
        for cm in configmaps or []:
            self.configmaps[(cm.namespace, cm.name)] = cm.model_copy(deep=True)
        self.statuses: dict[str, StatusPatch] = {}
        self.reloads: list[dict[str, str]] = []
        self.pod_annotations: dict[str, str] = {}
        self.created: list[str] = []
        self.updated: list[str] = []
        self.failures: dict[str, Exception] = {}
        self._version = 0

    def _maybe_fail(self, key: str) -> None:
        if key in self.failures:
            raise self.failures[key]

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def get_configmap(self, namespace: str, name: str) -> ConfigMapArtifact:
        self._maybe_fail(f"get:{name}")
        cm = self.configmaps.get((namespace, name))
        if cm is None:
            raise NotFoundError(f"configmaps {name!r} not found")
        return cm.model_copy(deep=True)

    def create_configmap(self, cm: ConfigMapArtifact) -> None:
        self._maybe_fail(f"create:{cm.name}")
        key = (cm.namespace, cm.name)
        if key in self.configmaps:
            raise AlreadyExistsError(f"configmaps {cm.name!r} already exists")
        self.configmaps[key] = cm.model_copy(
            update={"resource_version": self._next_version()}, deep=True
        )
        self.created.append(cm.name)

    def update_configmap(self, cm: ConfigMapArtifact) -> None:
        self._maybe_fail(f"update:{cm.name}")
        key = (cm.namespace, cm.name)
        if key not in self.configmaps:
            raise NotFoundError(f"configmaps {cm.name!r} not found")
        self.configmaps[key] = cm.model_copy(
            update={"resource_version": self._next_version()}, deep=True
        )
        self.updated.append(cm.name)

    def patch_one_rule_status(self, patch: StatusPatch) -> None:
        key = f"{patch.namespace}/{patch.name}"
        self._maybe_fail(f"status:{key}")
        self.statuses[key] = patch

    def update_pod_annotations(self, pod_labels: dict[str, str], namespace: str) -> None:
        self._maybe_fail("reload")
        self.reloads.append(dict(pod_labels))
        self.pod_annotations[RELOAD_ANNOTATION] = reload_timestamp()
        logger.debug("Recorded reload signal for pods %s in %s", pod_labels, namespace)

    def list_configmaps(self, namespace: Optional[str] = None) -> list[ConfigMapArtifact]:
        return sorted(
            (cm for (ns, _), cm in self.configmaps.items() if namespace in (None, ns)),
            key=lambda cm: cm.name,
        )
