"""kopf handlers, called directly with the reconciler and event posting patched."""
import logging
from unittest.mock import MagicMock, patch

import kopf
import pytest

from cluster_operator import operator
from cluster_operator.exceptions import PartialLifecycleFailure, StoreCommunicationError
from cluster_operator.identity import derive_identity
from cluster_operator.reconciler import ReconcileResult

LOGGER = logging.getLogger("test")


def _body(name="my-cluster", data=None):
    return {
        "metadata": {
            "name": name,
            "namespace": "kafka",
            "labels": {"app": "barnabas", "kind": "kafka"},
        },
        "data": data or {},
    }


@pytest.fixture
def reconciler():
    mock = MagicMock()
    mock.create.return_value = ReconcileResult("create", derive_identity("my-cluster", "kafka"),
                                               completed=["client-service my-cluster"])
    mock.delete.return_value = ReconcileResult("delete", derive_identity("my-cluster", "kafka"))
    with patch.object(operator, "get_reconciler", return_value=mock):
        yield mock


@pytest.fixture(autouse=True)
def events():
    with patch.object(kopf, "info") as info, patch.object(kopf, "warn") as warn:
        yield info, warn


def test_reconcile_creates_cluster_from_config_map(reconciler):
    result = operator.reconcile_cluster(body=_body(data={"replicas": "5"}), logger=LOGGER)

    identity, labels, config = reconciler.create.call_args[0]
    assert identity == derive_identity("my-cluster", "kafka")
    assert labels == {"app": "barnabas", "kind": "kafka"}
    assert config.replicas == 5
    assert result == {"resources": ["client-service my-cluster"]}


def test_invalid_data_is_permanent_error(reconciler, events):
    with pytest.raises(kopf.PermanentError):
        operator.reconcile_cluster(body=_body(data={"replicas": "lots"}), logger=LOGGER)

    reconciler.create.assert_not_called()
    events[1].assert_called_once()


def test_zero_replicas_is_permanent_error():
    store = MagicMock()
    with patch.object(operator, "get_store", return_value=store):
        with pytest.raises(kopf.PermanentError, match="replicas"):
            operator.reconcile_cluster(body=_body(data={"replicas": "0"}), logger=LOGGER)

    store.create_or_replace.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [
        StoreCommunicationError("Service", "kafka", "my-cluster", "HTTP 503"),
        PartialLifecycleFailure("create", "stateful-group my-cluster", ["client-service my-cluster"]),
    ],
)
def test_store_failures_are_retried(reconciler, error):
    reconciler.create.side_effect = error

    with pytest.raises(kopf.TemporaryError):
        operator.reconcile_cluster(body=_body(), logger=LOGGER)


def test_delete_handler(reconciler):
    operator.delete_cluster(body=_body(), logger=LOGGER)

    reconciler.delete.assert_called_once_with(derive_identity("my-cluster", "kafka"))


def test_delete_failure_is_retried(reconciler):
    reconciler.delete.side_effect = StoreCommunicationError("StatefulSet", "kafka", "my-cluster", "timeout")

    with pytest.raises(kopf.TemporaryError):
        operator.delete_cluster(body=_body(), logger=LOGGER)


def test_sweep_leaves_clusters_with_config_map(reconciler):
    with patch.object(operator, "get_store"), patch.object(operator, "exists", return_value=True):
        operator.sweep_orphaned_cluster(body=_body(), logger=LOGGER)

    reconciler.delete.assert_not_called()


def test_sweep_deletes_orphaned_cluster(reconciler):
    with patch.object(operator, "get_store"), patch.object(operator, "exists", return_value=False) as exists:
        operator.sweep_orphaned_cluster(body=_body(), logger=LOGGER)

    assert exists.call_args[0][1:] == (operator.ResourceKind.CONFIG_MAP, "kafka", "my-cluster")
    reconciler.delete.assert_called_once_with(derive_identity("my-cluster", "kafka"))


def test_sweep_probe_failure_is_retried(reconciler):
    error = StoreCommunicationError("ConfigMap", "kafka", "my-cluster", "HTTP 500")
    with patch.object(operator, "get_store"), patch.object(operator, "exists", side_effect=error):
        with pytest.raises(kopf.TemporaryError):
            operator.sweep_orphaned_cluster(body=_body(), logger=LOGGER)

    reconciler.delete.assert_not_called()


def test_startup_configures_kopf():
    settings = kopf.OperatorSettings()
    with patch.object(operator, "start_exporter") as start_exporter:
        operator.configure(settings=settings)

    assert settings.posting.enabled is True
    assert settings.persistence.finalizer == "kafka.barnabas.enmasse.io/finalizer"
    assert settings.execution.max_workers == operator.operator_settings.MAX_PARALLEL_RECONCILES
    start_exporter.assert_called_once_with(operator.operator_settings.METRICS_PORT)


def test_config_map_without_name_is_permanent_error(reconciler):
    body = {"metadata": {"namespace": "kafka"}, "data": {}}

    with pytest.raises(kopf.PermanentError):
        operator.reconcile_cluster(body=body, logger=LOGGER)
    with pytest.raises(kopf.PermanentError):
        operator.delete_cluster(body=body, logger=LOGGER)

    reconciler.create.assert_not_called()
    reconciler.delete.assert_not_called()


def test_stateful_set_without_name_is_permanent_error(reconciler):
    with patch.object(operator, "get_store"), patch.object(operator, "exists") as exists:
        with pytest.raises(kopf.PermanentError):
            operator.sweep_orphaned_cluster(body={"metadata": {"namespace": "kafka"}}, logger=LOGGER)

    exists.assert_not_called()
    reconciler.delete.assert_not_called()
