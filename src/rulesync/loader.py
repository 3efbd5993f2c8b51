"""
YAML manifest loader with per-path caching for VMRule and VMAlert objects.

Reads multi-document YAML files (the usual ``kubectl apply -f`` layout),
validates each ``VMRule`` document against the Pydantic models and caches
the result per file path.  Documents of other kinds are skipped.

Usage::

    from rulesync.loader import RuleSourceLoader

    loader = RuleSourceLoader()
    rules = loader.load_dir(Path("deploy/rules"))
    vmalert = loader.load_vmalert(Path("deploy/vmalert.yaml"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, ClassVar, Iterable

import yaml

from rulesync.models.rules import VMRULE_KIND, VMRule
from rulesync.models.vmalert import VMALERT_KIND, VMAlert

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _documents(raw: Iterable[Any], kind: str) -> list[dict[str, Any]]:
    docs = []
    for doc in raw:
        if not isinstance(doc, dict):
            continue
        if doc.get("kind") == "List":
            docs.extend(_documents(doc.get("items") or [], kind))
        elif doc.get("kind") == kind:
            docs.append(doc)
        else:
            logger.debug("Skipping document of kind %s", doc.get("kind"))
    return docs


class RuleSourceLoader:
    """Loads and caches VMRule manifests from YAML files."""

    _cache: ClassVar[dict[str, list[VMRule]]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the manifest cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Path) -> list[VMRule]:
        """Load every VMRule document from a YAML file.

        Args:
            path: Path to the manifest file.

        Returns:
            Validated ``VMRule`` objects in document order.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If a VMRule document does not match the schema.
        """
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("VMRule manifest cache hit: %s", key)
            return [r.model_copy(deep=True) for r in self._cache[key]]

        if not path.exists():
            raise FileNotFoundError(f"VMRule manifest not found: {path}")

        with open(path) as fh:
            raw = list(yaml.safe_load_all(fh))

        rules = [VMRule.model_validate(doc) for doc in _documents(raw, VMRULE_KIND)]
        self._cache[key] = rules

        logger.debug("Loaded %d vmrules from %s", len(rules), path)
        return [r.model_copy(deep=True) for r in rules]

    def load_dir(self, directory: Path) -> list[VMRule]:
        """Load VMRules from every ``*.yaml``/``*.yml`` file under a directory, sorted by path."""
        files = sorted(p for p in directory.rglob("*") if p.is_file() and p.suffix in YAML_SUFFIXES)
        rules: list[VMRule] = []
        for path in files:
            rules.extend(self.load(path))
        return rules

    def load_paths(self, paths: Iterable[Path]) -> list[VMRule]:
        rules: list[VMRule] = []
        for path in paths:
            rules.extend(self.load_dir(path) if path.is_dir() else self.load(path))
        return rules

    def load_vmalert(self, path: Path) -> VMAlert:
        """Load the first VMAlert document from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file holds no VMAlert document.
        """
        if not path.exists():
            raise FileNotFoundError(f"VMAlert manifest not found: {path}")
        with open(path) as fh:
            docs = _documents(yaml.safe_load_all(fh), VMALERT_KIND)
        if not docs:
            raise ValueError(f"no {VMALERT_KIND} document in {path}")
        return VMAlert.model_validate(docs[0])

    def load_from_string(self, yaml_str: str) -> list[VMRule]:
        """Load VMRules from a YAML string (convenience for testing).

        Args:
            yaml_str: YAML content, possibly multi-document.

        Returns:
            Validated ``VMRule`` objects.
        """
        return [
            VMRule.model_validate(doc)
            for doc in _documents(yaml.safe_load_all(yaml_str), VMRULE_KIND)
        ]
