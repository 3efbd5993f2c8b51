"""
Construction of rules ConfigMaps from packed buckets.
"""

from __future__ import annotations

from rulesync.models.configmap import FINALIZER_NAME, ConfigMapArtifact
from rulesync.models.vmalert import VMAlert
from rulesync.rules.packer import pack_rule_files

MANAGED_BY_LABEL = "managed-by"
MANAGED_BY_LABEL_VALUE = "vm-operator"
VMALERT_NAME_LABEL = "vmalert-name"


def rule_configmap_name(vmalert_name: str) -> str:
    """Base name shared by all rules ConfigMaps of a VMAlert."""
    return f"vm-{vmalert_name}-rulefiles"


def rule_configmap_labels(vmalert: VMAlert) -> dict[str, str]:
    return {
        VMALERT_NAME_LABEL: vmalert.name,
        MANAGED_BY_LABEL: MANAGED_BY_LABEL_VALUE,
    }


def make_rules_configmap(vmalert: VMAlert, bucket: dict[str, str], index: int) -> ConfigMapArtifact:
    return ConfigMapArtifact(
        name=f"{rule_configmap_name(vmalert.name)}-{index}",
        namespace=vmalert.namespace,
        labels=rule_configmap_labels(vmalert),
        owner_references=vmalert.as_owner(),
        finalizers=[FINALIZER_NAME],
        data=dict(bucket),
    )


def make_rules_configmaps(
    vmalert: VMAlert,
    rule_files: dict[str, str],
    max_size: int,
) -> list[ConfigMapArtifact]:
    """Pack rule files and build one ConfigMap per bucket, in bucket order."""
    buckets = pack_rule_files(rule_files, max_size)
    return [make_rules_configmap(vmalert, bucket, i) for i, bucket in enumerate(buckets)]
