"""rulesync CLI - Offline rendering of VMRule manifests into rules ConfigMaps."""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from rulesync.config import get_config
from rulesync.errors import RuleSyncError
from rulesync.loader import RuleSourceLoader
from rulesync.logging_setup import configure_logging
from rulesync.metrics import OTelBadObjectsCounter
from rulesync.models.meta import ObjectMeta
from rulesync.models.vmalert import DEDUPLICATE_RULES_ANNOTATION, VMAlert, VMAlertSpec
from rulesync.reconcile.applier import create_or_update_rule_configmaps
from rulesync.selection import StaticRuleSelector
from rulesync.storage.memory import InMemoryClusterStore


def _build_vmalert(
    vmalert_file: Optional[str],
    name: str,
    namespace: str,
    enforced_namespace_label: Optional[str],
    dedup: bool,
) -> VMAlert:
    if vmalert_file:
        vmalert = RuleSourceLoader().load_vmalert(Path(vmalert_file))
    else:
        vmalert = VMAlert(
            metadata=ObjectMeta(name=name, namespace=namespace),
            spec=VMAlertSpec(select_all_by_default=True),
        )
    if enforced_namespace_label is not None:
        vmalert.spec.enforced_namespace_label = enforced_namespace_label
    if dedup:
        vmalert.metadata.annotations[DEDUPLICATE_RULES_ANNOTATION] = "true"
    return vmalert


@click.command("render")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--vmalert", "vmalert_file", type=click.Path(exists=True), help="VMAlert manifest (selectors, enforced label)")
@click.option("--name", default="vmalert", show_default=True, help="VMAlert name when no manifest is given")
@click.option("--namespace", "-n", default="default", show_default=True, help="VMAlert namespace when no manifest is given")
@click.option("--enforced-namespace-label", default=None, help="Label forced to each VMRule's namespace")
@click.option("--dedup", is_flag=True, help="Drop duplicate rules within each group")
@click.option("--max-size", type=click.IntRange(min=1), help="Byte cap for one ConfigMap's data")
@click.option("--output-dir", "-o", type=click.Path(), help="Write one <configmap>.yaml per ConfigMap")
@click.option("--fail-on-invalid", is_flag=True, help="Exit with error if any VMRule is invalid")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]), default=None)
def render(
    paths: tuple,
    vmalert_file: Optional[str],
    name: str,
    namespace: str,
    enforced_namespace_label: Optional[str],
    dedup: bool,
    max_size: Optional[int],
    output_dir: Optional[str],
    fail_on_invalid: bool,
    log_level: Optional[str],
):
    """Render VMRule manifests into rules ConfigMaps without a cluster.

    PATHS are YAML files or directories of VMRule manifests.  Without
    --vmalert every loaded VMRule is selected.

    Example:
        rulesync render deploy/rules --vmalert deploy/vmalert.yaml -o out/
    """
    overrides = {"max_configmap_data_size": max_size} if max_size else {}
    config = get_config(**overrides)
    # stdout carries the rendered manifests
    configure_logging(log_level or config.log_level, config.log_format, stream=sys.stderr)

    loader = RuleSourceLoader()
    try:
        rules = loader.load_paths(Path(p) for p in paths)
        vmalert = _build_vmalert(vmalert_file, name, namespace, enforced_namespace_label, dedup)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # ValidationError is a ValueError
        kind = "invalid manifest" if isinstance(e, ValidationError) else "cannot load manifests"
        click.echo(f"Error: {kind}: {e}", err=True)
        sys.exit(1)

    store = InMemoryClusterStore()
    selector = StaticRuleSelector(rules, watch_namespace=config.watch_namespace)
    try:
        names = create_or_update_rule_configmaps(
            vmalert, store, selector, OTelBadObjectsCounter(), config=config
        )
    except RuleSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if names is None:
        click.echo(f"VMAlert {vmalert.name} selects no rules (no selectors, selectAllByDefault unset)", err=True)
        return

    configmaps = store.list_configmaps(vmalert.namespace)
    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for cm in configmaps:
            path = out / f"{cm.name}.yaml"
            path.write_text(yaml.safe_dump(cm.to_k8s_dict(), default_flow_style=False, sort_keys=False))
            click.echo(f"Wrote {path}", err=True)
    else:
        click.echo(
            yaml.safe_dump_all(
                [cm.to_k8s_dict() for cm in configmaps], default_flow_style=False, sort_keys=False
            ),
            nl=False,
        )

    invalid = sorted(key for key, patch in store.statuses.items() if patch.failed)
    for key in invalid:
        click.echo(f"Invalid VMRule {key}: {store.statuses[key].current_sync_error}", err=True)
    click.echo(
        f"Rendered {len(configmaps)} ConfigMap(s) from {len(rules)} VMRule(s), {len(invalid)} invalid",
        err=True,
    )
    if fail_on_invalid and invalid:
        sys.exit(1)
