"""
Resource descriptor builder.

Maps a cluster identity, its labels and its configuration to the three
resource specs that make up a Kafka cluster. Pure: no API calls, no
defaults, no mutation of the inputs.
"""
from typing import Optional

from cluster_operator.exceptions import InvalidConfiguration
from cluster_operator.identity import pod_selector
from cluster_operator.models import (
    ClientService,
    ClusterConfig,
    ClusterIdentity,
    HeadlessService,
    ProbeConfig,
    StatefulGroup,
)


def _validate(labels: Optional[dict[str, str]], config: ClusterConfig):
    if labels is None:
        raise InvalidConfiguration("labels must be a mapping (use {} for no labels)")
    if config.replicas < 1:
        raise InvalidConfiguration(f"replicas must be >= 1, got {config.replicas}")
    if not config.image or not config.image.strip():
        raise InvalidConfiguration("image reference must not be empty")
    for probe_name, probe in (("liveness", config.liveness), ("readiness", config.readiness)):
        _validate_probe(probe_name, probe)


def _validate_probe(probe_name: str, probe: ProbeConfig):
    if not probe.command:
        raise InvalidConfiguration(f"{probe_name} probe needs a command")
    if probe.initial_delay < 0:
        raise InvalidConfiguration(f"{probe_name} probe initial delay must be >= 0, got {probe.initial_delay}")
    if probe.timeout < 0:
        raise InvalidConfiguration(f"{probe_name} probe timeout must be >= 0, got {probe.timeout}")


def build_descriptors(
    identity: ClusterIdentity,
    labels: Optional[dict[str, str]],
    config: ClusterConfig,
) -> tuple[ClientService, HeadlessService, StatefulGroup]:
    """
    Return (client service, headless service, stateful group) for a cluster.

    All three carry the same copy of ``labels``. Both services select, and the
    stateful group labels its pods with, ``{"name": identity.name}`` so the
    headless service resolves to the broker pods.

    Raises InvalidConfiguration for None labels, replicas < 1, an empty image
    or negative probe timings.
    """
    _validate(labels, config)
    selector = pod_selector(identity)

    client_service = ClientService(
        name=identity.name,
        namespace=identity.namespace,
        labels=dict(labels),
        selector=dict(selector),
    )
    headless_service = HeadlessService(
        name=identity.headless_name,
        namespace=identity.namespace,
        labels=dict(labels),
        selector=dict(selector),
    )
    stateful_group = StatefulGroup(
        name=identity.name,
        namespace=identity.namespace,
        labels=dict(labels),
        pod_labels=dict(selector),
        service_name=identity.headless_name,
        replicas=config.replicas,
        image=config.image,
        mount_path=config.mount_path,
        liveness=config.liveness,
        readiness=config.readiness,
    )
    return client_service, headless_service, stateful_group
