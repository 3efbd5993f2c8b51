"""
Kubernetes-backed cluster store and rule selector.

Uses the official ``kubernetes`` client: ``CoreV1Api`` for ConfigMaps,
namespaces and pods, ``CustomObjectsApi`` for VMRule and VMAlert
objects.  ``ApiException`` is translated into :mod:`rulesync.errors`
types so the applier never sees client-specific errors.

Example:
    core_api, custom_api = load_kube_clients()
    store = KubernetesClusterStore(core_api, custom_api)
    selector = KubernetesRuleSelector(core_api, custom_api)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kubernetes import client, config
from kubernetes.client import ApiException
from pydantic import ValidationError
from urllib3.exceptions import HTTPError

from rulesync.errors import (
    AlreadyExistsError,
    ClusterAPIError,
    NotFoundError,
    SelectionError,
)
from rulesync.models.configmap import ConfigMapArtifact
from rulesync.models.meta import LabelSelector, labels_to_selector_string
from rulesync.models.rules import VMRULE_API_GROUP, VMRULE_API_VERSION, VMRULE_PLURAL, VMRule
from rulesync.models.status import StatusPatch
from rulesync.models.vmalert import VMALERT_PLURAL, VMAlert
from rulesync.selection import select_rule_sources
from rulesync.storage.base import RELOAD_ANNOTATION, BaseClusterStore, reload_timestamp

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 500

# Raised by the client's HTTP layer before any API response arrives.
TRANSPORT_ERRORS = (HTTPError, OSError)


def load_kube_clients(
    kubeconfig: Optional[str] = None,
) -> tuple[client.CoreV1Api, client.CustomObjectsApi]:
    """Load in-cluster config (falling back to kubeconfig) and build API clients."""
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
    return client.CoreV1Api(), client.CustomObjectsApi()


def _translate(e: ApiException, what: str, on_conflict: bool = False) -> ClusterAPIError:
    if e.status == 404:
        return NotFoundError(f"{what}: not found")
    if e.status == 409 and on_conflict:
        return AlreadyExistsError(f"{what}: already exists")
    return ClusterAPIError(f"{what}: {e.status} {e.reason}", status=e.status)


class KubernetesClusterStore(BaseClusterStore):
    """Cluster store talking to the Kubernetes API server."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        custom_api: client.CustomObjectsApi,
        api_client: Optional[client.ApiClient] = None,
    ):
        self.core_api = core_api
        self.custom_api = custom_api
        self._serializer = api_client or client.ApiClient()

    def get_configmap(self, namespace: str, name: str) -> ConfigMapArtifact:
        try:
            obj = self.core_api.read_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            raise _translate(e, f"get configmap {namespace}/{name}") from e
        return ConfigMapArtifact.from_k8s_dict(self._serializer.sanitize_for_serialization(obj))

    def create_configmap(self, cm: ConfigMapArtifact) -> None:
        try:
            self.core_api.create_namespaced_config_map(namespace=cm.namespace, body=cm.to_k8s_dict())
        except ApiException as e:
            raise _translate(e, f"create configmap {cm.namespace}/{cm.name}", on_conflict=True) from e

    def update_configmap(self, cm: ConfigMapArtifact) -> None:
        try:
            self.core_api.replace_namespaced_config_map(
                name=cm.name, namespace=cm.namespace, body=cm.to_k8s_dict()
            )
        except ApiException as e:
            raise _translate(e, f"update configmap {cm.namespace}/{cm.name}") from e

    def patch_one_rule_status(self, patch: StatusPatch) -> None:
        try:
            self.custom_api.patch_namespaced_custom_object_status(
                group=VMRULE_API_GROUP,
                version=VMRULE_API_VERSION,
                namespace=patch.namespace,
                plural=VMRULE_PLURAL,
                name=patch.name,
                body=patch.to_body(),
            )
        except ApiException as e:
            raise _translate(e, f"patch vmrule status {patch.namespace}/{patch.name}") from e

    def update_pod_annotations(self, pod_labels: dict[str, str], namespace: str) -> None:
        selector = labels_to_selector_string(pod_labels)
        try:
            pods = self.core_api.list_namespaced_pod(namespace=namespace, label_selector=selector)
        except ApiException as e:
            raise _translate(e, f"list pods {selector} in {namespace}") from e
        except TRANSPORT_ERRORS as e:
            raise ClusterAPIError(f"list pods {selector} in {namespace}: {e}") from e

        body = {"metadata": {"annotations": {RELOAD_ANNOTATION: reload_timestamp()}}}
        for pod in pods.items or []:
            name = pod.metadata.name
            try:
                self.core_api.patch_namespaced_pod(name=name, namespace=namespace, body=body)
            except ApiException as e:
                raise _translate(e, f"annotate pod {namespace}/{name}") from e
            except TRANSPORT_ERRORS as e:
                raise ClusterAPIError(f"annotate pod {namespace}/{name}: {e}") from e
            logger.debug("Annotated pod %s/%s for config reload", namespace, name)


def get_vmalert(custom_api: client.CustomObjectsApi, namespace: str, name: str) -> VMAlert:
    """Fetch and parse a VMAlert resource."""
    try:
        obj = custom_api.get_namespaced_custom_object(
            group=VMRULE_API_GROUP,
            version=VMRULE_API_VERSION,
            namespace=namespace,
            plural=VMALERT_PLURAL,
            name=name,
        )
    except ApiException as e:
        raise _translate(e, f"get vmalert {namespace}/{name}") from e
    return VMAlert.model_validate(obj)


class KubernetesRuleSelector:
    """Selects VMRules from the API server for a VMAlert."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        custom_api: client.CustomObjectsApi,
        watch_namespace: Optional[str] = None,
    ):
        self.core_api = core_api
        self.custom_api = custom_api
        self.watch_namespace = watch_namespace

    def _list_namespaces(self, selector: LabelSelector) -> list[str]:
        resp = self.core_api.list_namespace(label_selector=selector.to_selector_string())
        return [ns.metadata.name for ns in resp.items or []]

    def _list_page(self, namespace: Optional[str], kwargs: dict[str, Any]) -> dict[str, Any]:
        if namespace is None:
            return self.custom_api.list_cluster_custom_object(
                group=VMRULE_API_GROUP, version=VMRULE_API_VERSION, plural=VMRULE_PLURAL, **kwargs
            )
        return self.custom_api.list_namespaced_custom_object(
            group=VMRULE_API_GROUP,
            version=VMRULE_API_VERSION,
            namespace=namespace,
            plural=VMRULE_PLURAL,
            **kwargs,
        )

    def _list_rules(self, namespace: Optional[str], selector: Optional[LabelSelector]) -> list[VMRule]:
        kwargs: dict[str, Any] = {"limit": LIST_PAGE_SIZE}
        if selector is not None:
            kwargs["label_selector"] = selector.to_selector_string()

        rules: list[VMRule] = []
        while True:
            resp = self._list_page(namespace, kwargs)
            for item in resp.get("items") or []:
                try:
                    rules.append(VMRule.model_validate(item))
                except ValidationError as e:
                    meta = item.get("metadata") or {}
                    logger.warning(
                        "skipping malformed vmrule %s/%s: %s",
                        meta.get("namespace"),
                        meta.get("name"),
                        e,
                    )
            token = (resp.get("metadata") or {}).get("continue")
            if not token:
                return rules
            kwargs["_continue"] = token

    def select_sources(self, vmalert: VMAlert) -> list[VMRule]:
        try:
            return select_rule_sources(
                vmalert, self._list_namespaces, self._list_rules, self.watch_namespace
            )
        except ApiException as e:
            raise SelectionError(
                f"cannot select vmrules for vmalert {vmalert.namespace}/{vmalert.name}: "
                f"{e.status} {e.reason}"
            ) from e
