"""
Cluster storage backends for rule reconciliation.

- Kubernetes (API server via the official client)
- Memory (offline rendering and tests)

Example:
    from rulesync.storage import InMemoryClusterStore

    store = InMemoryClusterStore()
    names = create_or_update_rule_configmaps(vmalert, store, selector, counter)
    store.list_configmaps(vmalert.namespace)
"""

from rulesync.storage.base import RELOAD_ANNOTATION, BaseClusterStore, ClusterStore
from rulesync.storage.kubernetes import (
    KubernetesClusterStore,
    KubernetesRuleSelector,
    get_vmalert,
    load_kube_clients,
)
from rulesync.storage.memory import InMemoryClusterStore

__all__ = [
    "ClusterStore",
    "BaseClusterStore",
    "RELOAD_ANNOTATION",
    "InMemoryClusterStore",
    "KubernetesClusterStore",
    "KubernetesRuleSelector",
    "get_vmalert",
    "load_kube_clients",
]
