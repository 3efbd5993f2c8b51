"""
Rule processing stages: identity, deduplication, validation, rendering,
packing, ConfigMap construction and diffing.

Each stage is a pure function over models from :mod:`rulesync.models`;
cluster I/O happens only in :mod:`rulesync.reconcile`.

Public API::

    from rulesync.rules import (
        calculate_rule_id,
        deduplicate_rules,
        validate_rule_source,
        generate_content,
        render_rule_sources,
        SelectionResult,
        pack_rule_files,
        make_rules_configmaps,
        rules_configmap_diff,
        DiffResult,
    )
"""

from rulesync.rules.artifacts import (
    make_rules_configmap,
    make_rules_configmaps,
    rule_configmap_name,
)
from rulesync.rules.dedup import deduplicate_rules
from rulesync.rules.diff import DiffResult, merge_labels, rules_configmap_diff
from rulesync.rules.identity import calculate_rule_id
from rulesync.rules.packer import bucket_size, pack_rule_files
from rulesync.rules.render import (
    DEFAULT_RULE_FILE_NAME,
    SelectionResult,
    generate_content,
    render_rule_sources,
)
from rulesync.rules.validator import validate_rule_source

__all__ = [
    # Identity / dedup
    "calculate_rule_id",
    "deduplicate_rules",
    # Validate / render
    "validate_rule_source",
    "generate_content",
    "render_rule_sources",
    "SelectionResult",
    "DEFAULT_RULE_FILE_NAME",
    # Pack / build
    "bucket_size",
    "pack_rule_files",
    "rule_configmap_name",
    "make_rules_configmap",
    "make_rules_configmaps",
    # Diff
    "DiffResult",
    "merge_labels",
    "rules_configmap_diff",
]
