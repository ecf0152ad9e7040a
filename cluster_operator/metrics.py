"""Prometheus metrics for the operator."""
import logging

from prometheus_client import Counter, start_http_server

logger = logging.getLogger("kafka-operator.metrics")

RECONCILIATIONS = Counter(
    "kafka_operator_reconciliations_total",
    "Cluster create/delete reconciliations by outcome",
    ["operation", "result"],
)
RESOURCE_OPERATIONS = Counter(
    "kafka_operator_resource_operations_total",
    "Writes issued to the Kubernetes API",
    ["kind", "action"],
)


def start_exporter(port: int) -> bool:
    """Serve /metrics on ``port``. A port of 0 disables the exporter."""
    if not port:
        logger.info("Metrics exporter disabled")
        return False
    start_http_server(port)
    logger.info(f"Metrics exporter listening on :{port}")
    return True
