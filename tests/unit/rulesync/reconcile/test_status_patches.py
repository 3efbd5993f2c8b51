"""Tests for per-parent VMRule status patches."""

from __future__ import annotations

import re

from rulesync.models.status import StatusPatch
from rulesync.reconcile.status import (
    REASON_APPLIED,
    REASON_PARSING_ERROR,
    build_status_patch,
    build_status_patches,
    now_rfc3339,
)

PARENT = "example.default.vmalert"


def _now() -> str:
    return "2026-01-01T00:00:00Z"


class TestBuildStatusPatch:
    def test_valid_source(self, make_vmrule):
        patch = build_status_patch(PARENT, make_vmrule(name="r1", namespace="team-a"), _now)
        assert (patch.namespace, patch.name) == ("team-a", "r1")
        assert patch.current_sync_error == ""
        assert not patch.failed
        assert patch.conditions == [
            {
                "type": "example.default.vmalertReady",
                "status": "True",
                "reason": REASON_APPLIED,
                "message": "",
                "lastTransitionTime": "2026-01-01T00:00:00Z",
            }
        ]

    def test_bad_source(self, make_vmrule):
        source = make_vmrule()
        source.status.current_sync_error = "invalid expression"
        patch = build_status_patch(PARENT, source, _now)
        assert patch.failed
        cond = patch.conditions[0]
        assert cond["status"] == "False"
        assert cond["reason"] == REASON_PARSING_ERROR
        assert cond["message"] == "invalid expression"

    def test_other_parents_conditions_kept(self, make_vmrule):
        source = make_vmrule()
        other = {"type": "other.ns.vmalertReady", "status": "False", "reason": REASON_PARSING_ERROR}
        source.status.conditions = [other]
        patch = build_status_patch(PARENT, source, _now)
        assert patch.conditions[0] == other
        assert [c["type"] for c in patch.conditions] == [
            "other.ns.vmalertReady",
            "example.default.vmalertReady",
        ]

    def test_own_condition_replaced(self, make_vmrule):
        source = make_vmrule()
        source.status.conditions = [
            {"type": "example.default.vmalertReady", "status": "False", "lastTransitionTime": "old"}
        ]
        patch = build_status_patch(PARENT, source, _now)
        assert len(patch.conditions) == 1
        assert patch.conditions[0]["status"] == "True"
        assert patch.conditions[0]["lastTransitionTime"] == "2026-01-01T00:00:00Z"

    def test_transition_time_kept_when_status_unchanged(self, make_vmrule):
        source = make_vmrule()
        source.status.conditions = [
            {"type": "example.default.vmalertReady", "status": "True", "lastTransitionTime": "earlier"}
        ]
        patch = build_status_patch(PARENT, source, _now)
        assert patch.conditions[0]["lastTransitionTime"] == "earlier"

    def test_observed_generation(self, make_vmrule):
        patch = build_status_patch(PARENT, make_vmrule(generation=7), _now)
        assert patch.conditions[0]["observedGeneration"] == 7

    def test_batch(self, make_vmrule):
        patches = build_status_patches(PARENT, [make_vmrule(name="a"), make_vmrule(name="b")], _now)
        assert [p.name for p in patches] == ["a", "b"]

    def test_default_clock_is_rfc3339_utc(self, make_vmrule):
        patch = build_status_patch(PARENT, make_vmrule())
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", patch.conditions[-1]["lastTransitionTime"])
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", now_rfc3339())


class TestStatusPatchBody:
    def test_body(self):
        patch = StatusPatch(namespace="ns", name="r", current_sync_error="e", conditions=[{"type": "t"}])
        assert patch.to_body() == {"status": {"currentSyncError": "e", "conditions": [{"type": "t"}]}}
