"""
Configuration module — all settings from env vars with sensible defaults.
Follows 12-factor app methodology.

The cluster defaults below are the values a Kafka ConfigMap gets when it
does not override them; the builder itself has no defaults.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pydantic import ValidationError

from cluster_operator.exceptions import InvalidConfiguration
from cluster_operator.models import ClusterConfig, ProbeConfig

BUILTIN_IMAGE = "enmasseproject/kafka-statefulsets:latest"
BUILTIN_REPLICAS = 3
BUILTIN_MOUNT_PATH = "/var/lib/kafka"
BUILTIN_HEALTHCHECK_SCRIPT = "/opt/kafka/kafka_healthcheck.sh"
BUILTIN_PROBE_INITIAL_DELAY = 15
BUILTIN_PROBE_TIMEOUT = 5


@dataclass(frozen=True)
class Settings:
    # Kubernetes
    KUBECONFIG: str = os.environ.get("KUBECONFIG", "")
    IN_CLUSTER: bool = os.environ.get("IN_CLUSTER", "false").lower() == "true"

    # Discovery: ConfigMaps (and the StatefulSets they produce) carrying these labels
    WATCH_LABELS: str = os.environ.get("WATCH_LABELS", "app=barnabas,kind=kafka")

    # Cluster defaults
    DEFAULT_IMAGE: str = os.environ.get("DEFAULT_IMAGE", BUILTIN_IMAGE)
    DEFAULT_REPLICAS: int = int(os.environ.get("DEFAULT_REPLICAS", str(BUILTIN_REPLICAS)))
    MOUNT_PATH: str = os.environ.get("MOUNT_PATH", BUILTIN_MOUNT_PATH)
    HEALTHCHECK_SCRIPT: str = os.environ.get("HEALTHCHECK_SCRIPT", BUILTIN_HEALTHCHECK_SCRIPT)
    PROBE_INITIAL_DELAY: int = int(os.environ.get("PROBE_INITIAL_DELAY", str(BUILTIN_PROBE_INITIAL_DELAY)))
    PROBE_TIMEOUT: int = int(os.environ.get("PROBE_TIMEOUT", str(BUILTIN_PROBE_TIMEOUT)))

    # Operator
    MAX_PARALLEL_RECONCILES: int = int(os.environ.get("MAX_PARALLEL_RECONCILES", "3"))
    RETRY_DELAY: int = int(os.environ.get("RETRY_DELAY", "30"))
    ORPHAN_CHECK_INTERVAL: int = int(os.environ.get("ORPHAN_CHECK_INTERVAL", "120"))
    METRICS_PORT: int = int(os.environ.get("METRICS_PORT", "0"))
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def watch_labels(self) -> dict[str, str]:
        """
        WATCH_LABELS parsed into a dict, e.g. {"app": "barnabas", "kind": "kafka"}.

        Raises InvalidConfiguration for an empty selector; kopf reads an empty
        label filter as match-all.
        """
        labels = {}
        for pair in self.WATCH_LABELS.split(","):
            if not pair.strip():
                continue
            key, _, value = pair.partition("=")
            if not key.strip():
                raise InvalidConfiguration(f"WATCH_LABELS has an entry without a key: {pair!r}")
            labels[key.strip()] = value.strip()
        if not labels:
            raise InvalidConfiguration("WATCH_LABELS must name at least one label")
        return labels


settings = Settings()


def load_cluster_config(data: Optional[Mapping[str, str]] = None,
                        settings: Settings = settings) -> ClusterConfig:
    """
    Build a ClusterConfig from operator defaults plus optional ConfigMap
    ``data`` overrides (``replicas``, ``image``). Values are only type-checked
    here; range checks happen in the builder.
    """
    data = data or {}
    probe = {
        "command": [settings.HEALTHCHECK_SCRIPT],
        "initial_delay": settings.PROBE_INITIAL_DELAY,
        "timeout": settings.PROBE_TIMEOUT,
    }
    try:
        return ClusterConfig(
            replicas=data.get("replicas", settings.DEFAULT_REPLICAS),
            image=data.get("image", settings.DEFAULT_IMAGE),
            mount_path=settings.MOUNT_PATH,
            liveness=ProbeConfig(**probe),
            readiness=ProbeConfig(**probe),
        )
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid cluster configuration: {e}") from e
