"""
Deterministic next-fit packing of rule files into ConfigMap buckets.

File names are sorted first so the result does not depend on mapping
order.  Only the most recently opened bucket is tried for each file;
earlier buckets are never revisited.  Bucket indices end up in ConfigMap
names, so changing the policy would move files between ConfigMaps on
the next reconciliation.

A file larger than the cap still gets a bucket of its own: files are
never split, so such a bucket exceeds the cap and the API server will
reject the ConfigMap.  If that file sorts first, bucket 0 stays empty.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))


def bucket_size(bucket: dict[str, str]) -> int:
    """Total byte size of all file contents in a bucket."""
    return sum(content_size(v) for v in bucket.values())


def pack_rule_files(rule_files: dict[str, str], max_size: int) -> list[dict[str, str]]:
    """Split rule files into buckets whose total size stays within ``max_size``.

    Returns:
        Ordered buckets; always at least one (possibly empty) bucket.
    """
    buckets: list[dict[str, str]] = [{}]
    current_size = 0
    for filename in sorted(rule_files):
        content = rule_files[filename]
        size = content_size(content)
        if current_size + size > max_size:
            buckets.append({})
            current_size = 0
        if size > max_size:
            logger.warning(
                "rule file %s is %d bytes, larger than the ConfigMap cap of %d bytes",
                filename,
                size,
                max_size,
            )
        buckets[-1][filename] = content
        current_size += size
    return buckets
