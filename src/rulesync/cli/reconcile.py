"""rulesync CLI - One-shot reconciliation against a Kubernetes cluster."""

import sys
from typing import Optional

import click
from kubernetes.config import ConfigException

from rulesync.config import get_config
from rulesync.errors import RuleSyncError
from rulesync.logging_setup import configure_logging
from rulesync.metrics import OTelBadObjectsCounter
from rulesync.reconcile.applier import create_or_update_rule_configmaps
from rulesync.storage.kubernetes import (
    KubernetesClusterStore,
    KubernetesRuleSelector,
    get_vmalert,
    load_kube_clients,
)


@click.command("reconcile")
@click.option("--name", required=True, help="VMAlert name")
@click.option("--namespace", "-n", default="default", show_default=True, help="VMAlert namespace")
@click.option("--kubeconfig", type=click.Path(), help="Path to kubeconfig (in-cluster config if omitted)")
@click.option("--watch-namespace", default=None, help="Restrict VMRule selection to one namespace")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]), default=None)
def reconcile(
    name: str,
    namespace: str,
    kubeconfig: Optional[str],
    watch_namespace: Optional[str],
    log_level: Optional[str],
):
    """Reconcile the rules ConfigMaps of one VMAlert.

    Selects the VMRules the VMAlert consumes, updates their status,
    creates or updates its rules ConfigMaps and signals its pods to
    reload when anything changed.

    Example:
        rulesync reconcile --name example -n monitoring
    """
    overrides = {}
    if kubeconfig:
        overrides["kubeconfig"] = kubeconfig
    if watch_namespace is not None:
        overrides["watch_namespace"] = watch_namespace
    config = get_config(**overrides)
    configure_logging(log_level or config.log_level, config.log_format)

    try:
        core_api, custom_api = load_kube_clients(config.kubeconfig)
        vmalert = get_vmalert(custom_api, namespace, name)
        store = KubernetesClusterStore(core_api, custom_api)
        selector = KubernetesRuleSelector(core_api, custom_api, config.watch_namespace)
        names = create_or_update_rule_configmaps(
            vmalert, store, selector, OTelBadObjectsCounter(), config=config
        )
    except (RuleSyncError, ConfigException) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if names is None:
        click.echo(f"VMAlert {namespace}/{name} is unmanaged, nothing to do")
        return
    for cm_name in names:
        click.echo(cm_name)
