"""Tests for the Kubernetes-backed store and selector with a mocked API client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException
from urllib3.exceptions import MaxRetryError

from rulesync.errors import AlreadyExistsError, ClusterAPIError, NotFoundError, SelectionError
from rulesync.models.configmap import ConfigMapArtifact
from rulesync.models.meta import LabelSelector
from rulesync.models.status import StatusPatch
from rulesync.storage.base import RELOAD_ANNOTATION
from rulesync.storage.kubernetes import (
    KubernetesClusterStore,
    KubernetesRuleSelector,
    get_vmalert,
    load_kube_clients,
)


def _vmrule_item(name: str, namespace: str = "default") -> dict:
    return {
        "apiVersion": "operator.victoriametrics.com/v1beta1",
        "kind": "VMRule",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"groups": [{"name": "g", "rules": [{"alert": "A", "expr": "up"}]}]},
    }


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def custom_api():
    return MagicMock()


@pytest.fixture
def k8s_store(core_api, custom_api):
    serializer = MagicMock()
    serializer.sanitize_for_serialization.side_effect = lambda obj: obj
    return KubernetesClusterStore(core_api, custom_api, api_client=serializer)


# ---------------------------------------------------------------------------
# Client loading
# ---------------------------------------------------------------------------


class TestLoadKubeClients:
    def test_explicit_kubeconfig(self):
        with patch("rulesync.storage.kubernetes.config") as cfg:
            load_kube_clients("/tmp/kubeconfig")
        cfg.load_kube_config.assert_called_once_with(config_file="/tmp/kubeconfig")
        cfg.load_incluster_config.assert_not_called()

    def test_in_cluster_first(self):
        with patch("rulesync.storage.kubernetes.config") as cfg:
            load_kube_clients()
        cfg.load_incluster_config.assert_called_once()
        cfg.load_kube_config.assert_not_called()

    def test_falls_back_to_kubeconfig(self):
        with patch("rulesync.storage.kubernetes.config") as cfg:
            cfg.ConfigException = Exception
            cfg.load_incluster_config.side_effect = Exception("not in cluster")
            load_kube_clients()
        cfg.load_kube_config.assert_called_once_with()


# ---------------------------------------------------------------------------
# ConfigMaps
# ---------------------------------------------------------------------------


class TestKubernetesClusterStore:
    def test_get_configmap(self, k8s_store, core_api):
        core_api.read_namespaced_config_map.return_value = {
            "metadata": {"name": "cm", "namespace": "mon", "resourceVersion": "7"},
            "data": {"a": "b"},
        }
        cm = k8s_store.get_configmap("mon", "cm")
        core_api.read_namespaced_config_map.assert_called_once_with(name="cm", namespace="mon")
        assert cm.data == {"a": "b"}
        assert cm.resource_version == "7"

    def test_get_not_found(self, k8s_store, core_api):
        core_api.read_namespaced_config_map.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(NotFoundError):
            k8s_store.get_configmap("mon", "cm")

    def test_get_other_error(self, k8s_store, core_api):
        core_api.read_namespaced_config_map.side_effect = ApiException(status=500, reason="Internal")
        with pytest.raises(ClusterAPIError) as exc:
            k8s_store.get_configmap("mon", "cm")
        assert not isinstance(exc.value, NotFoundError)
        assert exc.value.status == 500

    def test_create(self, k8s_store, core_api):
        k8s_store.create_configmap(ConfigMapArtifact(name="cm", namespace="mon", data={"a": "b"}))
        kwargs = core_api.create_namespaced_config_map.call_args.kwargs
        assert kwargs["namespace"] == "mon"
        assert kwargs["body"]["metadata"]["name"] == "cm"
        assert kwargs["body"]["data"] == {"a": "b"}

    def test_create_conflict(self, k8s_store, core_api):
        core_api.create_namespaced_config_map.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(AlreadyExistsError):
            k8s_store.create_configmap(ConfigMapArtifact(name="cm"))

    def test_update_conflict_is_generic_error(self, k8s_store, core_api):
        core_api.replace_namespaced_config_map.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(ClusterAPIError) as exc:
            k8s_store.update_configmap(ConfigMapArtifact(name="cm"))
        assert not isinstance(exc.value, AlreadyExistsError)

    def test_update(self, k8s_store, core_api):
        k8s_store.update_configmap(ConfigMapArtifact(name="cm", namespace="mon"))
        kwargs = core_api.replace_namespaced_config_map.call_args.kwargs
        assert (kwargs["name"], kwargs["namespace"]) == ("cm", "mon")

    def test_patch_rule_status(self, k8s_store, custom_api):
        k8s_store.patch_rule_status([StatusPatch("team-a", "r1", "bad", [{"type": "x"}])])
        kwargs = custom_api.patch_namespaced_custom_object_status.call_args.kwargs
        assert kwargs["group"] == "operator.victoriametrics.com"
        assert kwargs["plural"] == "vmrules"
        assert (kwargs["namespace"], kwargs["name"]) == ("team-a", "r1")
        assert kwargs["body"]["status"]["currentSyncError"] == "bad"

    def test_patch_rule_status_error(self, k8s_store, custom_api):
        custom_api.patch_namespaced_custom_object_status.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(ClusterAPIError):
            k8s_store.patch_rule_status([StatusPatch("team-a", "r1", "")])

    def test_update_pod_annotations(self, k8s_store, core_api):
        pods = [SimpleNamespace(metadata=SimpleNamespace(name=n)) for n in ("p1", "p2")]
        core_api.list_namespaced_pod.return_value = SimpleNamespace(items=pods)
        k8s_store.update_pod_annotations({"b": "2", "a": "1"}, "mon")
        core_api.list_namespaced_pod.assert_called_once_with(namespace="mon", label_selector="a=1,b=2")
        assert core_api.patch_namespaced_pod.call_count == 2
        body = core_api.patch_namespaced_pod.call_args.kwargs["body"]
        assert RELOAD_ANNOTATION in body["metadata"]["annotations"]

    def test_update_pod_annotations_error(self, k8s_store, core_api):
        core_api.list_namespaced_pod.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(ClusterAPIError):
            k8s_store.update_pod_annotations({"a": "1"}, "mon")

    def test_update_pod_annotations_transport_error(self, k8s_store, core_api):
        core_api.list_namespaced_pod.side_effect = MaxRetryError(None, "/api/v1/namespaces/mon/pods")
        with pytest.raises(ClusterAPIError, match="list pods"):
            k8s_store.update_pod_annotations({"a": "1"}, "mon")

    def test_annotate_connection_reset(self, k8s_store, core_api):
        pods = [SimpleNamespace(metadata=SimpleNamespace(name="p1"))]
        core_api.list_namespaced_pod.return_value = SimpleNamespace(items=pods)
        core_api.patch_namespaced_pod.side_effect = ConnectionResetError("connection reset by peer")
        with pytest.raises(ClusterAPIError, match="annotate pod mon/p1"):
            k8s_store.update_pod_annotations({"a": "1"}, "mon")


class TestGetVMAlert:
    def test_parses_object(self, custom_api):
        custom_api.get_namespaced_custom_object.return_value = {
            "metadata": {"name": "ex", "namespace": "mon", "uid": "u"},
            "spec": {"selectAllByDefault": True},
        }
        vmalert = get_vmalert(custom_api, "mon", "ex")
        assert vmalert.spec.select_all_by_default
        assert custom_api.get_namespaced_custom_object.call_args.kwargs["plural"] == "vmalerts"

    def test_not_found(self, custom_api):
        custom_api.get_namespaced_custom_object.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(NotFoundError):
            get_vmalert(custom_api, "mon", "ex")


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestKubernetesRuleSelector:
    def test_cluster_wide_listing_with_pagination(self, core_api, custom_api, make_vmalert):
        custom_api.list_cluster_custom_object.side_effect = [
            {"items": [_vmrule_item("b")], "metadata": {"continue": "tok"}},
            {"items": [_vmrule_item("a")], "metadata": {}},
        ]
        selected = KubernetesRuleSelector(core_api, custom_api).select_sources(make_vmalert())
        assert [r.name for r in selected] == ["a", "b"]
        second = custom_api.list_cluster_custom_object.call_args_list[1].kwargs
        assert second["_continue"] == "tok"
        assert second["limit"] == 500

    def test_namespace_selector(self, core_api, custom_api, make_vmalert):
        core_api.list_namespace.return_value = SimpleNamespace(
            items=[SimpleNamespace(metadata=SimpleNamespace(name="team-a"))]
        )
        custom_api.list_namespaced_custom_object.return_value = {"items": [_vmrule_item("r", "team-a")]}
        vmalert = make_vmalert(
            select_all=False,
            rule_namespace_selector=LabelSelector(match_labels={"env": "prod"}),
            rule_selector=LabelSelector(match_labels={"team": "a"}),
        )
        selected = KubernetesRuleSelector(core_api, custom_api).select_sources(vmalert)
        assert [r.namespaced_name for r in selected] == ["team-a/r"]
        core_api.list_namespace.assert_called_once_with(label_selector="env=prod")
        kwargs = custom_api.list_namespaced_custom_object.call_args.kwargs
        assert kwargs["namespace"] == "team-a"
        assert kwargs["label_selector"] == "team=a"

    def test_malformed_item_skipped(self, core_api, custom_api, make_vmalert):
        custom_api.list_cluster_custom_object.return_value = {
            "items": [{"metadata": {"namespace": "x"}}, _vmrule_item("ok")]
        }
        selected = KubernetesRuleSelector(core_api, custom_api).select_sources(make_vmalert())
        assert [r.name for r in selected] == ["ok"]

    def test_api_error_wrapped(self, core_api, custom_api, make_vmalert):
        custom_api.list_cluster_custom_object.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(SelectionError, match="403"):
            KubernetesRuleSelector(core_api, custom_api).select_sources(make_vmalert())
