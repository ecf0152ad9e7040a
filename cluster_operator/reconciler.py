"""
Lifecycle reconciler for a Kafka cluster.

  create: ClientService → HeadlessService → StatefulGroup, each create-or-replace
  delete: ClientService → StatefulGroup → HeadlessService, each probe-then-delete

The StatefulGroup names the HeadlessService as its governing service, so the
headless service is removed last, once nothing references it. Both
operations stop at the first failing step and leave completed
steps in place; calling the same operation again converges.

The reconciler holds no state between calls. Callers must serialize
operations per cluster (kopf does this per object).
"""
import logging
from dataclasses import dataclass, field

from cluster_operator.builder import build_descriptors
from cluster_operator.exceptions import PartialLifecycleFailure, StoreCommunicationError
from cluster_operator.models import (
    ClientService,
    ClusterConfig,
    ClusterIdentity,
    HeadlessService,
    ResourceKind,
    StatefulGroup,
)
from cluster_operator.prober import exists

logger = logging.getLogger("kafka-operator.reconciler")


@dataclass
class ReconcileResult:
    operation: str
    cluster: ClusterIdentity
    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def teardown_order(identity: ClusterIdentity) -> list[tuple[str, ResourceKind, str]]:
    """(component, kind, name) in deletion order."""
    return [
        (ClientService.component, ResourceKind.SERVICE, identity.name),
        (StatefulGroup.component, ResourceKind.STATEFUL_SET, identity.name),
        (HeadlessService.component, ResourceKind.SERVICE, identity.headless_name),
    ]


class ClusterReconciler:
    def __init__(self, store):
        self.store = store

    def create(self, identity: ClusterIdentity, labels: dict[str, str],
               config: ClusterConfig) -> ReconcileResult:
        """
        Bring the cluster's three resources to the desired state.

        Raises InvalidConfiguration before touching the store, the
        StoreCommunicationError itself if the first write fails, and
        PartialLifecycleFailure if a later write fails.
        """
        # builder order is creation order
        specs = build_descriptors(identity, labels, config)
        result = ReconcileResult("create", identity)

        for spec in specs:
            step = f"{spec.component} {spec.name}"
            logger.info(f"[{identity.namespace}/{identity.name}] create-or-replace {step}")
            try:
                self.store.create_or_replace(spec.kind, identity.namespace, spec)
            except StoreCommunicationError as e:
                logger.error(f"[{identity.namespace}/{identity.name}] {step} failed: {e}")
                if not result.completed:
                    raise
                raise PartialLifecycleFailure("create", step, result.completed, e) from e
            result.completed.append(step)

        logger.info(f"[{identity.namespace}/{identity.name}] cluster resources applied")
        return result

    def delete(self, identity: ClusterIdentity) -> ReconcileResult:
        """
        Remove whatever part of the cluster exists. Missing resources are
        skipped, so deleting twice (or deleting a half-created cluster) is safe.
        """
        result = ReconcileResult("delete", identity)

        for component, kind, name in teardown_order(identity):
            step = f"{component} {name}"
            try:
                if not exists(self.store, kind, identity.namespace, name):
                    logger.info(f"[{identity.namespace}/{identity.name}] {step} not found — skipping")
                    result.skipped.append(step)
                    continue
                logger.info(f"[{identity.namespace}/{identity.name}] deleting {step}")
                deleted = self.store.delete(kind, identity.namespace, name)
            except StoreCommunicationError as e:
                logger.error(f"[{identity.namespace}/{identity.name}] {step} failed: {e}")
                if not result.completed:
                    raise
                raise PartialLifecycleFailure("delete", step, result.completed, e) from e
            if deleted:
                result.completed.append(step)
            else:
                result.skipped.append(step)

        logger.info(f"[{identity.namespace}/{identity.name}] cluster resources removed")
        return result
