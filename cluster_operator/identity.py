"""
Cluster naming conventions.

derive_identity is the only place the headless service name is computed;
everything else reads it from the ClusterIdentity.
"""
from collections.abc import Mapping
from typing import Any

from cluster_operator.exceptions import InvalidConfiguration
from cluster_operator.models import ClusterIdentity

HEADLESS_SUFFIX = "-headless"


def derive_identity(name: str, namespace: str) -> ClusterIdentity:
    return ClusterIdentity(name=name, namespace=namespace, headless_name=name + HEADLESS_SUFFIX)


def pod_selector(identity: ClusterIdentity) -> dict[str, str]:
    """Labels every broker pod carries and both services select on."""
    return {"name": identity.name}


def _metadata(obj: Any) -> tuple[str, str, dict[str, str]]:
    """Read (name, namespace, labels) from a client model or a raw/kopf body."""
    if isinstance(obj, Mapping):
        meta = obj.get("metadata") or {}
        name, namespace, labels = meta.get("name"), meta.get("namespace"), meta.get("labels")
    else:
        meta = obj.metadata
        name, namespace, labels = meta.name, meta.namespace, meta.labels
    if not name or not namespace:
        raise InvalidConfiguration(f"resource metadata needs a name and namespace, got {name!r}/{namespace!r}")
    return name, namespace, dict(labels or {})


def identity_from_config_map(config_map: Any) -> tuple[ClusterIdentity, dict[str, str]]:
    """Identity and labels of the cluster described by a ConfigMap."""
    name, namespace, labels = _metadata(config_map)
    return derive_identity(name, namespace), labels


def identity_from_stateful_set(stateful_set: Any) -> tuple[ClusterIdentity, dict[str, str]]:
    """Identity and labels of the cluster a broker StatefulSet belongs to."""
    name, namespace, labels = _metadata(stateful_set)
    return derive_identity(name, namespace), labels
