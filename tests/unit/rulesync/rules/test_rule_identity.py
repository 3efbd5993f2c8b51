"""Tests for content-addressed rule identity."""

from __future__ import annotations

from rulesync.models.rules import Rule
from rulesync.rules.identity import _FNV64_OFFSET, _Fnv64a, calculate_rule_id


class TestFnv64a:
    def test_empty_input_is_offset_basis(self):
        assert _Fnv64a().sum64() == _FNV64_OFFSET

    def test_known_vector(self):
        # FNV-1a 64 of "a"
        h = _Fnv64a()
        h.write(b"a")
        assert h.sum64() == 0xAF63DC4C8601EC8C

    def test_incremental_writes_equal_single_write(self):
        a = _Fnv64a()
        a.write(b"foo")
        a.write(b"bar")
        b = _Fnv64a()
        b.write(b"foobar")
        assert a.sum64() == b.sum64()


class TestCalculateRuleId:
    def test_deterministic(self):
        rule = Rule(alert="A", expr="up == 0", labels={"severity": "page"})
        assert calculate_rule_id(rule) == calculate_rule_id(rule.model_copy(deep=True))

    def test_fits_in_64_bits(self):
        rule = Rule(alert="A", expr="up == 0")
        assert 0 <= calculate_rule_id(rule) < 2**64

    def test_label_insertion_order_ignored(self):
        a = Rule(alert="A", expr="up == 0", labels={"a": "1", "b": "2"})
        b = Rule(alert="A", expr="up == 0", labels={"b": "2", "a": "1"})
        assert calculate_rule_id(a) == calculate_rule_id(b)

    def test_expression_changes_id(self):
        a = Rule(alert="A", expr="up == 0")
        b = Rule(alert="A", expr="up == 1")
        assert calculate_rule_id(a) != calculate_rule_id(b)

    def test_kind_changes_id(self):
        alerting = Rule(alert="x", expr="up")
        recording = Rule(record="x", expr="up")
        assert calculate_rule_id(alerting) != calculate_rule_id(recording)

    def test_name_changes_id(self):
        a = Rule(alert="A", expr="up == 0")
        b = Rule(alert="B", expr="up == 0")
        assert calculate_rule_id(a) != calculate_rule_id(b)

    def test_label_value_changes_id(self):
        a = Rule(alert="A", expr="up == 0", labels={"severity": "page"})
        b = Rule(alert="A", expr="up == 0", labels={"severity": "ticket"})
        assert calculate_rule_id(a) != calculate_rule_id(b)

    def test_label_separator_prevents_collisions(self):
        a = Rule(alert="A", expr="up", labels={"ab": "c"})
        b = Rule(alert="A", expr="up", labels={"a": "bc"})
        assert calculate_rule_id(a) != calculate_rule_id(b)

    def test_missing_and_empty_labels_equal(self):
        a = Rule(alert="A", expr="up == 0")
        b = Rule(alert="A", expr="up == 0", labels={})
        assert calculate_rule_id(a) == calculate_rule_id(b)

    def test_annotations_and_for_ignored(self):
        a = Rule(alert="A", expr="up == 0", annotations={"summary": "x"}, **{"for": "5m"})
        b = Rule(alert="A", expr="up == 0")
        assert calculate_rule_id(a) == calculate_rule_id(b)
