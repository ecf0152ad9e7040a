"""
Kafka Cluster Operator — Kubernetes operator for ConfigMap-described Kafka clusters

Architecture:
  Labelled ConfigMap → Operator watches → Reconcile:
    1. Client Service      (<name>,          ClusterIP, 9092)
    2. Headless Service    (<name>-headless, clusterIP None, 9092)
    3. StatefulSet         (<name>, serviceName <name>-headless)

  On Delete (Finalizer):
    1. Client Service
    2. StatefulSet
    3. Headless Service
    each only if it still exists

  On Resume (Operator Restart):
    Re-apply every watched ConfigMap → create-or-replace converges

  Orphan sweep (Timer):
    Labelled StatefulSets whose ConfigMap is gone are torn down

Run with:  kopf run -m cluster_operator.operator
"""

import logging

import kopf

from cluster_operator.config import load_cluster_config
from cluster_operator.config import settings as operator_settings
from cluster_operator.exceptions import (
    InvalidConfiguration,
    PartialLifecycleFailure,
    StoreCommunicationError,
)
from cluster_operator.identity import identity_from_config_map, identity_from_stateful_set
from cluster_operator.metrics import RECONCILIATIONS, start_exporter
from cluster_operator.models import ResourceKind
from cluster_operator.prober import exists
from cluster_operator.reconciler import ClusterReconciler
from cluster_operator.services.kubernetes_service import KubernetesClusterStore

logger = logging.getLogger("kafka-operator")

_store = None


def get_store() -> KubernetesClusterStore:
    """Lazy-init the API-backed store (API clients only, no resource state)."""
    global _store
    if _store is None:
        _store = KubernetesClusterStore()
    return _store


def get_reconciler() -> ClusterReconciler:
    return ClusterReconciler(get_store())


def _retry(operation: str, e: Exception) -> kopf.TemporaryError:
    RECONCILIATIONS.labels(operation=operation, result="failed").inc()
    return kopf.TemporaryError(f"{operation} failed, retrying: {e}", delay=operator_settings.RETRY_DELAY)


# ---------------------------------------------------------------------------
# Kopf operator settings
# ---------------------------------------------------------------------------

@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **kwargs):
    logging.getLogger("kafka-operator").setLevel(operator_settings.LOG_LEVEL)
    settings.posting.enabled = True
    settings.persistence.finalizer = "kafka.barnabas.enmasse.io/finalizer"
    settings.execution.max_workers = operator_settings.MAX_PARALLEL_RECONCILES
    start_exporter(operator_settings.METRICS_PORT)
    logger.info(
        f"Kafka Cluster Operator started (max_workers={operator_settings.MAX_PARALLEL_RECONCILES}, "
        f"watching configmaps with {operator_settings.WATCH_LABELS})"
    )


# ---------------------------------------------------------------------------
# CREATE / UPDATE / RESUME handler
# ---------------------------------------------------------------------------

@kopf.on.create("configmaps", labels=operator_settings.watch_labels)
@kopf.on.update("configmaps", labels=operator_settings.watch_labels)
@kopf.on.resume("configmaps", labels=operator_settings.watch_labels)
def reconcile_cluster(body, logger, **kwargs):
    """
    Apply the cluster described by a ConfigMap.

    Idempotent: every resource is create-or-replace, so a retry after a
    partial failure finishes the remaining steps.
    """
    try:
        identity, labels = identity_from_config_map(body)
        logger.info(f"Reconciling Kafka cluster {identity.namespace}/{identity.name}")
        cluster_config = load_cluster_config(body.get("data"))
        result = get_reconciler().create(identity, labels, cluster_config)
    except InvalidConfiguration as e:
        RECONCILIATIONS.labels(operation="create", result="invalid").inc()
        kopf.warn(body, reason="InvalidConfiguration", message=str(e))
        raise kopf.PermanentError(str(e)) from e
    except (StoreCommunicationError, PartialLifecycleFailure) as e:
        kopf.warn(body, reason="ReconcileFailed", message=str(e)[:200])
        raise _retry("create", e) from e

    RECONCILIATIONS.labels(operation="create", result="success").inc()
    kopf.info(body, reason="ClusterApplied",
              message=f"{cluster_config.replicas} brokers, headless service {identity.headless_name}")
    return {"resources": result.completed}


# ---------------------------------------------------------------------------
# DELETE handler — cleanup with finalizer guarantee
# ---------------------------------------------------------------------------

@kopf.on.delete("configmaps", labels=operator_settings.watch_labels)
def delete_cluster(body, logger, **kwargs):
    """
    Remove every resource of the cluster that still exists. The finalizer
    stays until this succeeds.
    """
    try:
        identity, _ = identity_from_config_map(body)
        logger.info(f"Deleting Kafka cluster {identity.namespace}/{identity.name}")
        result = get_reconciler().delete(identity)
    except InvalidConfiguration as e:
        raise kopf.PermanentError(str(e)) from e
    except (StoreCommunicationError, PartialLifecycleFailure) as e:
        raise _retry("delete", e) from e

    RECONCILIATIONS.labels(operation="delete", result="success").inc()
    logger.info(
        f"Kafka cluster {identity.name} removed "
        f"(deleted: {result.completed or 'none'}, already gone: {result.skipped or 'none'})"
    )


# ---------------------------------------------------------------------------
# TIMER — tear down clusters whose ConfigMap disappeared
# ---------------------------------------------------------------------------

@kopf.timer("apps", "v1", "statefulsets", labels=operator_settings.watch_labels,
            interval=operator_settings.ORPHAN_CHECK_INTERVAL, idle=operator_settings.ORPHAN_CHECK_INTERVAL)
def sweep_orphaned_cluster(body, logger, **kwargs):
    """
    A ConfigMap deleted while the operator was down never reaches
    delete_cluster; its StatefulSet is the only trace left.
    """
    try:
        identity, _ = identity_from_stateful_set(body)
        if exists(get_store(), ResourceKind.CONFIG_MAP, identity.namespace, identity.name):
            return
        logger.warning(f"Kafka cluster {identity.namespace}/{identity.name} has no ConfigMap — removing")
        get_reconciler().delete(identity)
    except InvalidConfiguration as e:
        raise kopf.PermanentError(str(e)) from e
    except (StoreCommunicationError, PartialLifecycleFailure) as e:
        raise _retry("delete", e) from e

    RECONCILIATIONS.labels(operation="delete", result="success").inc()
