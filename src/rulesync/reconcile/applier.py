"""
Rules ConfigMap reconciliation for a VMAlert.

Runs the whole pipeline for one VMAlert: select VMRules, render them
(recording per-object errors on their status), pack the rule files into
ConfigMaps and converge the cluster towards them.

Failure handling:

- selection and status-write failures abort before any ConfigMap write;
- a create that hits an existing object is treated as done;
- any other create or update failure aborts the run, keeping writes
  already made (the next reconciliation converges);
- a failed pod reload signal is logged and otherwise ignored.

Usage::

    from rulesync.reconcile.applier import create_or_update_rule_configmaps

    names = create_or_update_rule_configmaps(
        vmalert, store, selector, OTelBadObjectsCounter()
    )
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from rulesync.config import RuleSyncConfig, get_config
from rulesync.errors import (
    AlreadyExistsError,
    ClusterAPIError,
    ConfigMapWriteError,
    NotFoundError,
    ReconcileCancelled,
    StatusUpdateError,
)
from rulesync.metrics import BadObjectsCounter
from rulesync.models.configmap import ConfigMapArtifact
from rulesync.models.vmalert import VMAlert
from rulesync.otel import emit_diff_summary, emit_reload_failed, emit_selection_summary, tracer
from rulesync.reconcile.finalize import free_if_needed
from rulesync.reconcile.status import build_status_patches, now_rfc3339
from rulesync.rules.artifacts import make_rules_configmaps
from rulesync.rules.diff import rules_configmap_diff
from rulesync.rules.render import SelectionResult, render_rule_sources
from rulesync.selection import RuleSourceSelector
from rulesync.storage.base import ClusterStore

logger = logging.getLogger(__name__)


def _check_cancelled(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ReconcileCancelled(f"reconciliation cancelled before {stage}")


def select_rules_update_status(
    vmalert: VMAlert,
    store: ClusterStore,
    selector: RuleSourceSelector,
    counter: BadObjectsCounter,
    now: Callable[[], str] = now_rfc3339,
) -> SelectionResult:
    """Select and render VMRules for ``vmalert`` and write their statuses.

    Raises:
        SelectionError: If rule sources cannot be listed.
        StatusUpdateError: If writing valid or bad statuses fails.
    """
    sources = selector.select_sources(vmalert)
    result = render_rule_sources(
        sources,
        enforced_namespace_label=vmalert.spec.enforced_namespace_label,
        dedup=vmalert.need_dedup_rules(),
    )
    counter.add(len(result.bad))

    parent = vmalert.parent_object
    try:
        store.patch_rule_status(build_status_patches(parent, result.valid, now))
    except ClusterAPIError as e:
        raise StatusUpdateError(f"cannot update rules statuses: {e}") from e
    try:
        store.patch_rule_status(build_status_patches(parent, result.bad, now))
    except ClusterAPIError as e:
        raise StatusUpdateError(f"cannot update bad rules statuses: {e}") from e

    emit_selection_summary(vmalert, result)
    return result


def _fetch_current(store: ClusterStore, desired: list[ConfigMapArtifact]) -> list[ConfigMapArtifact]:
    current = []
    for cm in desired:
        try:
            current.append(store.get_configmap(cm.namespace, cm.name))
        except NotFoundError:
            continue
    return current


def _create(store: ClusterStore, cm: ConfigMapArtifact, what: str) -> None:
    try:
        store.create_configmap(cm)
    except AlreadyExistsError:
        logger.debug("configmap %s already exists, skipping create", cm.name)
    except ClusterAPIError as e:
        raise ConfigMapWriteError(f"failed to create {what}: {cm.name}, err: {e}") from e


def create_or_update_rule_configmaps(
    vmalert: VMAlert,
    store: ClusterStore,
    selector: RuleSourceSelector,
    counter: BadObjectsCounter,
    config: Optional[RuleSyncConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> Optional[list[str]]:
    """Converge the rules ConfigMaps of ``vmalert``.

    Args:
        vmalert: Parent resource.
        store: Cluster store for ConfigMaps, statuses and pod annotations.
        selector: Source of VMRules visible to ``vmalert``.
        counter: Incremented by the number of invalid VMRules.
        config: Operator config; defaults to :func:`get_config`.
        cancel: Checked before each stage and each ConfigMap write; when
            set the run stops with :class:`ReconcileCancelled`.

    Returns:
        Sorted names of the desired ConfigMaps, or ``None`` for an
        unmanaged VMAlert (no selectors, no select-all).
    """
    if vmalert.is_unmanaged():
        return None
    config = config or get_config()

    with tracer.start_as_current_span(
        "rulesync.reconcile_rules",
        attributes={"vmalert.name": vmalert.name, "vmalert.namespace": vmalert.namespace},
    ):
        _check_cancelled(cancel, "selection")
        result = select_rules_update_status(vmalert, store, selector, counter)

        _check_cancelled(cancel, "configmap build")
        desired = make_rules_configmaps(vmalert, result.rule_files, config.max_configmap_data_size)
        desired.sort(key=lambda cm: cm.name)
        desired_names = [cm.name for cm in desired]
        current = _fetch_current(store, desired)

        if not current:
            for cm in desired:
                _check_cancelled(cancel, f"configmap create {cm.name}")
                logger.info("creating new ConfigMap %s for rules", cm.name)
                _create(store, cm, "Configmap")
            return desired_names

        current.sort(key=lambda cm: cm.name)
        diff = rules_configmap_diff(current, desired)
        emit_diff_summary(vmalert, diff)

        for cm in diff.to_create:
            _check_cancelled(cancel, f"configmap create {cm.name}")
            logger.info("creating additional configmap=%s for rules", cm.name)
            _create(store, cm, "new rules Configmap")

        for cm in diff.to_update:
            _check_cancelled(cancel, f"configmap update {cm.name}")
            free_if_needed(store, cm)
            logger.info("updating ConfigMap %s configuration", cm.name)
            try:
                store.update_configmap(cm)
            except ClusterAPIError as e:
                raise ConfigMapWriteError(
                    f"failed to update rules Configmap: {cm.name}, err: {e}"
                ) from e

        if diff.has_changes:
            logger.info("triggering pod config reload by changing annotation")
            # ConfigMaps are already written; pods pick them up on their next sync
            try:
                store.update_pod_annotations(vmalert.pod_labels(), vmalert.namespace)
            except Exception as e:
                emit_reload_failed(vmalert, e)

    return desired_names
