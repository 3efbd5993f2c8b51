"""
Content-addressed rule identity.

``calculate_rule_id`` hashes the fields that make two rules equivalent
for deduplication: expression, kind tag, record/alert name and the label
set.  Labels are fed in key order with a ``0xff`` separator after each
pair, so insertion order never changes the id.  The hash is 64-bit
FNV-1a, keeping ids stable across processes and releases.
"""

from __future__ import annotations

from rulesync.models.rules import Rule

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF

_LABEL_SEPARATOR = b"\xff"


class _Fnv64a:
    def __init__(self) -> None:
        self._value = _FNV64_OFFSET

    def write(self, data: bytes) -> None:
        value = self._value
        for byte in data:
            value ^= byte
            value = (value * _FNV64_PRIME) & _MASK64
        self._value = value

    def sum64(self) -> int:
        return self._value


def calculate_rule_id(rule: Rule) -> int:
    """Return the 64-bit identity of a rule."""
    h = _Fnv64a()
    h.write(rule.expr.encode("utf-8"))
    if rule.record:
        h.write(b"recording")
        h.write(rule.record.encode("utf-8"))
    else:
        h.write(b"alerting")
        h.write((rule.alert or "").encode("utf-8"))
    for key, value in sorted((rule.labels or {}).items()):
        h.write(key.encode("utf-8"))
        h.write(value.encode("utf-8"))
        h.write(_LABEL_SEPARATOR)
    return h.sum64()
