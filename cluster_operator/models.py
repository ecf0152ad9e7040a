"""
Value models for a Kafka cluster and the Kubernetes resources it is made of.

Everything here is immutable and free of I/O. Resource specs know how to
render themselves into kubernetes client objects; they never talk to the API.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from kubernetes import client
from pydantic import BaseModel, ConfigDict, Field

CLIENT_PORT = 9092
CLIENT_PORT_NAME = "kafka"
CONTAINER_PORT_NAME = "clientport"
VOLUME_NAME = "kafka-storage"


class ResourceKind(str, Enum):
    SERVICE = "Service"
    STATEFUL_SET = "StatefulSet"
    CONFIG_MAP = "ConfigMap"


class ClusterIdentity(BaseModel):
    """(name, namespace) of one Kafka cluster. Build with identity.derive_identity."""
    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    headless_name: str


class ProbeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: list[str]
    initial_delay: int = Field(description="Seconds before the first check; 0 probes immediately")
    timeout: int = Field(description="Seconds before a single check is considered failed")

    def to_probe(self) -> client.V1Probe:
        return client.V1Probe(
            _exec=client.V1ExecAction(command=list(self.command)),
            initial_delay_seconds=self.initial_delay,
            timeout_seconds=self.timeout,
        )


class ClusterConfig(BaseModel):
    """Desired-state knobs for a cluster. Defaults come from config.load_cluster_config."""
    model_config = ConfigDict(frozen=True)

    replicas: int
    image: str
    mount_path: str
    liveness: ProbeConfig
    readiness: ProbeConfig


# ---------------------------------------------------------------------------
# Resource specs
# ---------------------------------------------------------------------------

class _ServiceSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ResourceKind] = ResourceKind.SERVICE
    component: ClassVar[str] = "service"
    cluster_ip: ClassVar[Optional[str]] = None

    name: str
    namespace: str
    labels: dict[str, str]
    selector: dict[str, str]
    port: int = CLIENT_PORT

    def to_manifest(self) -> client.V1Service:
        return client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=client.V1ObjectMeta(
                name=self.name,
                namespace=self.namespace,
                labels=dict(self.labels),
            ),
            spec=client.V1ServiceSpec(
                type="ClusterIP",
                cluster_ip=self.cluster_ip,
                selector=dict(self.selector),
                ports=[
                    client.V1ServicePort(
                        name=CLIENT_PORT_NAME,
                        port=self.port,
                        target_port=self.port,
                        protocol="TCP",
                    )
                ],
            ),
        )


class ClientService(_ServiceSpec):
    """Routable ClusterIP service clients bootstrap from."""
    component: ClassVar[str] = "client-service"


class HeadlessService(_ServiceSpec):
    """Address-less service giving each broker pod a stable DNS name."""
    component: ClassVar[str] = "headless-service"
    cluster_ip: ClassVar[Optional[str]] = "None"


class StatefulGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ResourceKind] = ResourceKind.STATEFUL_SET
    component: ClassVar[str] = "stateful-group"

    name: str
    namespace: str
    labels: dict[str, str]
    pod_labels: dict[str, str]
    service_name: str
    replicas: int
    image: str
    mount_path: str
    liveness: ProbeConfig
    readiness: ProbeConfig
    port: int = CLIENT_PORT

    def to_manifest(self) -> client.V1StatefulSet:
        container = client.V1Container(
            name=self.name,
            image=self.image,
            volume_mounts=[client.V1VolumeMount(name=VOLUME_NAME, mount_path=self.mount_path)],
            ports=[
                client.V1ContainerPort(
                    name=CONTAINER_PORT_NAME,
                    protocol="TCP",
                    container_port=self.port,
                )
            ],
            liveness_probe=self.liveness.to_probe(),
            readiness_probe=self.readiness.to_probe(),
        )
        return client.V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=client.V1ObjectMeta(
                name=self.name,
                namespace=self.namespace,
                labels=dict(self.labels),
            ),
            spec=client.V1StatefulSetSpec(
                service_name=self.service_name,
                replicas=self.replicas,
                selector=client.V1LabelSelector(match_labels=dict(self.pod_labels)),
                template=client.V1PodTemplateSpec(
                    metadata=client.V1ObjectMeta(name=self.name, labels=dict(self.pod_labels)),
                    spec=client.V1PodSpec(
                        containers=[container],
                        volumes=[
                            client.V1Volume(
                                name=VOLUME_NAME,
                                empty_dir=client.V1EmptyDirVolumeSource(),
                            )
                        ],
                    ),
                ),
            ),
        )


ResourceSpec = Union[ClientService, HeadlessService, StatefulGroup]


# ---------------------------------------------------------------------------
# Lookup results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Present:
    resource: Any


@dataclass(frozen=True)
class Absent:
    pass


Lookup = Union[Present, Absent]
