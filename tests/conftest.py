import pytest

from cluster_operator.exceptions import StoreCommunicationError
from cluster_operator.identity import derive_identity
from cluster_operator.models import Absent, ClusterConfig, Present, ProbeConfig


class FakeClusterStore:
    """In-memory cluster store that records every call in order."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.fail_on = set()
        # names removed by someone else between the lookup and the delete
        self.deleted_concurrently = set()

    def _call(self, action, kind, namespace, name):
        self.calls.append((action, kind.value, name))
        if (action, name) in self.fail_on:
            raise StoreCommunicationError(kind.value, namespace, name, "connection refused")

    def get_by_kind_and_name(self, kind, namespace, name):
        self._call("get", kind, namespace, name)
        key = (kind, namespace, name)
        return Present(self.objects[key]) if key in self.objects else Absent()

    def create_or_replace(self, kind, namespace, spec):
        self._call("apply", kind, namespace, spec.name)
        self.objects[(kind, namespace, spec.name)] = spec.to_manifest()

    def delete(self, kind, namespace, name):
        self._call("delete", kind, namespace, name)
        if name in self.deleted_concurrently:
            self.objects.pop((kind, namespace, name), None)
            return False
        return self.objects.pop((kind, namespace, name), None) is not None

    def mutations(self):
        return [c for c in self.calls if c[0] != "get"]


@pytest.fixture
def store():
    return FakeClusterStore()


@pytest.fixture
def identity():
    return derive_identity("my-cluster", "kafka")


@pytest.fixture
def labels():
    return {"app": "kafka"}


@pytest.fixture
def cluster_config():
    probe = ProbeConfig(command=["/opt/kafka/kafka_healthcheck.sh"], initial_delay=15, timeout=5)
    return ClusterConfig(
        replicas=3,
        image="kafka:2.1",
        mount_path="/var/lib/kafka",
        liveness=probe,
        readiness=probe,
    )
