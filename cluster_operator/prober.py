"""Existence checks used to make deletion idempotent."""
from cluster_operator.models import Present, ResourceKind


def exists(store, kind: ResourceKind, namespace: str, name: str) -> bool:
    """
    True if the resource is in the store, False if it is not.

    A StoreCommunicationError from the lookup propagates: an unreachable API
    server must never read as "absent".
    """
    return isinstance(store.get_by_kind_and_name(kind, namespace, name), Present)
