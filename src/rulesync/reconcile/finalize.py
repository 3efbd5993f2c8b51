"""
Release of stale ownership markers before a ConfigMap update.

A rules ConfigMap can outlive the VMAlert that created it (recreated
parent with a new UID, or an object pending deletion).  Updating it
while it still carries the old owner reference or our finalizer can
leave it stuck.  ``free_if_needed`` strips those markers from the live
object first.
"""

from __future__ import annotations

import logging

from rulesync.errors import NotFoundError
from rulesync.models.configmap import FINALIZER_NAME, ConfigMapArtifact
from rulesync.storage.base import ClusterStore

logger = logging.getLogger(__name__)


def free_if_needed(store: ClusterStore, desired: ConfigMapArtifact) -> bool:
    """Remove stale owner references and, for a deleting object, our finalizer.

    Args:
        store: Cluster store used to read and write the live object.
        desired: The ConfigMap about to be written; its owner references
            define which owners are current.

    Returns:
        True if the live object was modified.
    """
    try:
        live = store.get_configmap(desired.namespace, desired.name)
    except NotFoundError:
        return False

    owner_uids = {ref.get("uid") for ref in desired.owner_references}
    kept_refs = [ref for ref in live.owner_references if ref.get("uid") in owner_uids]
    stale = len(kept_refs) != len(live.owner_references)
    deleting = bool(live.deletion_timestamp)
    if not stale and not (deleting and live.has_finalizer):
        return False

    finalizers = live.finalizers
    if deleting:
        finalizers = [f for f in live.finalizers if f != FINALIZER_NAME]
    released = live.model_copy(update={"owner_references": kept_refs, "finalizers": finalizers})
    logger.info(
        "releasing configmap %s/%s: stale_owners=%d deleting=%s",
        live.namespace,
        live.name,
        len(live.owner_references) - len(kept_refs),
        deleting,
    )
    store.update_configmap(released)
    return True
