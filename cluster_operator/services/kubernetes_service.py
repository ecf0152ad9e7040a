"""
Kubernetes service layer — the cluster store the reconciler reads and writes.

Design principles:
  - Lookups return Present/Absent: a 404 is an answer, not an error
  - Writes are create-or-replace: a 409 on create turns into a replace
    pinned to the live resourceVersion (optimistic concurrency)
  - Clean error handling: every other API or transport failure becomes a
    StoreCommunicationError naming the resource involved
"""

import logging
from typing import Optional

import urllib3
from kubernetes import client, config
from kubernetes.client import ApiException

from cluster_operator.config import settings
from cluster_operator.exceptions import StoreCommunicationError
from cluster_operator.metrics import RESOURCE_OPERATIONS
from cluster_operator.models import Absent, Lookup, Present, ResourceKind, ResourceSpec

logger = logging.getLogger("kafka-operator.store")

_k8s_loaded = False


def _ensure_k8s():
    """Load Kubernetes config exactly once."""
    global _k8s_loaded
    if _k8s_loaded:
        return
    if settings.IN_CLUSTER:
        config.load_incluster_config()
    else:
        config.load_kube_config(config_file=settings.KUBECONFIG or None)
    _k8s_loaded = True


def core_api() -> client.CoreV1Api:
    _ensure_k8s()
    return client.CoreV1Api()


def apps_api() -> client.AppsV1Api:
    _ensure_k8s()
    return client.AppsV1Api()


def _store_error(kind: ResourceKind, namespace: str, name: str, e: Exception) -> StoreCommunicationError:
    if isinstance(e, ApiException):
        reason = f"HTTP {e.status}: {e.reason}"
    else:
        reason = f"{type(e).__name__}: {e}"
    return StoreCommunicationError(kind.value, namespace, name, reason)


class KubernetesClusterStore:
    """Namespaced Service / StatefulSet / ConfigMap access for the reconciler."""

    def __init__(self, core: Optional[client.CoreV1Api] = None,
                 apps: Optional[client.AppsV1Api] = None):
        self.core = core or core_api()
        self.apps = apps or apps_api()

    # -- kind dispatch ------------------------------------------------------

    def _read(self, kind: ResourceKind):
        return {
            ResourceKind.SERVICE: self.core.read_namespaced_service,
            ResourceKind.STATEFUL_SET: self.apps.read_namespaced_stateful_set,
            ResourceKind.CONFIG_MAP: self.core.read_namespaced_config_map,
        }[kind]

    def _writers(self, kind: ResourceKind):
        """(create, replace, delete) for a writable kind."""
        if kind == ResourceKind.SERVICE:
            return (self.core.create_namespaced_service,
                    self.core.replace_namespaced_service,
                    self.core.delete_namespaced_service)
        if kind == ResourceKind.STATEFUL_SET:
            return (self.apps.create_namespaced_stateful_set,
                    self.apps.replace_namespaced_stateful_set,
                    self.apps.delete_namespaced_stateful_set)
        raise ValueError(f"{kind.value} is read-only for this operator")

    # -- store contract -----------------------------------------------------

    def get_by_kind_and_name(self, kind: ResourceKind, namespace: str, name: str) -> Lookup:
        try:
            return Present(self._read(kind)(name=name, namespace=namespace))
        except ApiException as e:
            if e.status == 404:
                return Absent()
            raise _store_error(kind, namespace, name, e) from e
        except urllib3.exceptions.HTTPError as e:
            raise _store_error(kind, namespace, name, e) from e

    def create_or_replace(self, kind: ResourceKind, namespace: str, spec: ResourceSpec):
        """Create the resource, or overwrite the live one to match ``spec``."""
        create, replace, _ = self._writers(kind)
        body = spec.to_manifest()
        try:
            create(namespace=namespace, body=body)
            RESOURCE_OPERATIONS.labels(kind=kind.value, action="create").inc()
            logger.info(f"{kind.value} {namespace}/{spec.name} created")
            return
        except ApiException as e:
            if e.status != 409:
                raise _store_error(kind, namespace, spec.name, e) from e
        except urllib3.exceptions.HTTPError as e:
            raise _store_error(kind, namespace, spec.name, e) from e

        try:
            live = self._read(kind)(name=spec.name, namespace=namespace)
            body.metadata.resource_version = live.metadata.resource_version
            if kind == ResourceKind.SERVICE and body.spec.cluster_ip is None:
                # clusterIP is immutable once allocated
                body.spec.cluster_ip = live.spec.cluster_ip
            replace(name=spec.name, namespace=namespace, body=body)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _store_error(kind, namespace, spec.name, e) from e
        RESOURCE_OPERATIONS.labels(kind=kind.value, action="replace").inc()
        logger.info(f"{kind.value} {namespace}/{spec.name} replaced")

    def delete(self, kind: ResourceKind, namespace: str, name: str) -> bool:
        """Delete a resource. Returns True if deleted, False if it was already gone."""
        _, _, delete = self._writers(kind)
        kwargs = {}
        if kind == ResourceKind.STATEFUL_SET:
            kwargs["body"] = client.V1DeleteOptions(propagation_policy="Foreground")
        try:
            delete(name=name, namespace=namespace, **kwargs)
            RESOURCE_OPERATIONS.labels(kind=kind.value, action="delete").inc()
            logger.info(f"{kind.value} {namespace}/{name} deletion initiated")
            return True
        except ApiException as e:
            if e.status == 404:
                logger.info(f"{kind.value} {namespace}/{name} already gone")
                return False
            raise _store_error(kind, namespace, name, e) from e
        except urllib3.exceptions.HTTPError as e:
            raise _store_error(kind, namespace, name, e) from e
