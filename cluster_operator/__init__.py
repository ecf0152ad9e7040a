"""Kubernetes operator that provisions and tears down Kafka clusters."""

__version__ = "0.1.0"
