"""
rulesync - VMRule to vmalert rules ConfigMap reconciliation.

Selects the VMRule objects a VMAlert consumes, validates and renders them
into vmalert rule files, packs the files into size-bounded ConfigMaps and
converges the cluster towards that desired set.  Invalid VMRules are
isolated: their error is written to their status and the rest of the
batch proceeds.

Example usage:
    from rulesync import create_or_update_rule_configmaps
    from rulesync.metrics import OTelBadObjectsCounter
    from rulesync.storage import KubernetesClusterStore, KubernetesRuleSelector, load_kube_clients

    core_api, custom_api = load_kube_clients()
    names = create_or_update_rule_configmaps(
        vmalert,
        KubernetesClusterStore(core_api, custom_api),
        KubernetesRuleSelector(core_api, custom_api),
        OTelBadObjectsCounter(),
    )
"""

__version__ = "0.1.0"
__all__ = [
    "create_or_update_rule_configmaps",
    "render_rule_sources",
    "VMAlert",
    "VMRule",
    "__version__",
]


# Lazy imports to avoid loading the kubernetes client at import time
def __getattr__(name: str):
    if name == "create_or_update_rule_configmaps":
        from rulesync.reconcile.applier import create_or_update_rule_configmaps
        return create_or_update_rule_configmaps
    if name == "render_rule_sources":
        from rulesync.rules.render import render_rule_sources
        return render_rule_sources
    if name == "VMAlert":
        from rulesync.models.vmalert import VMAlert
        return VMAlert
    if name == "VMRule":
        from rulesync.models.rules import VMRule
        return VMRule
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
