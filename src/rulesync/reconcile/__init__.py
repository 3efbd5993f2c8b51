"""
Cluster-facing reconciliation of rules ConfigMaps.

Public API::

    from rulesync.reconcile import (
        create_or_update_rule_configmaps,
        select_rules_update_status,
        build_status_patch,
        free_if_needed,
    )
"""

from rulesync.reconcile.applier import (
    create_or_update_rule_configmaps,
    select_rules_update_status,
)
from rulesync.reconcile.finalize import free_if_needed
from rulesync.reconcile.status import (
    CONDITION_TYPE_SUFFIX,
    REASON_APPLIED,
    REASON_PARSING_ERROR,
    build_status_patch,
    build_status_patches,
    now_rfc3339,
)

__all__ = [
    # Applier
    "create_or_update_rule_configmaps",
    "select_rules_update_status",
    # Status
    "CONDITION_TYPE_SUFFIX",
    "REASON_APPLIED",
    "REASON_PARSING_ERROR",
    "build_status_patch",
    "build_status_patches",
    "now_rfc3339",
    # Finalizers
    "free_if_needed",
]
