"""Prometheus monitoring backend for the etcd operator.

PrometheusMonitor turns operator lifecycle events into Prometheus metrics:

1. Reconciliation loop health - duration, throughput, errors
2. Kubernetes resource sync - operation counts and latency per child resource
3. Status writes - submitted and conflict-dropped writes
"""

from typing import Any, Dict, List, Optional
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from etcd_operator.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the etcd operator.

    Metrics are registered on `registry`, the process-wide default registry
    unless another one is passed in.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        self.reconcile_duration = Histogram(
            "etcdop_reconcile_duration_seconds",
            "Time spent in reconciliation loop",
            labelnames=["cluster_name", "namespace", "trigger_source", "result"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            "etcdop_reconcile_total",
            "Total number of reconciliation attempts",
            labelnames=["cluster_name", "namespace", "trigger_source", "result"],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            "etcdop_reconcile_errors_total",
            "Total number of reconciliation errors",
            labelnames=["cluster_name", "namespace", "error_type"],
            registry=registry,
        )

        self.resource_sync_duration = Histogram(
            "etcdop_resource_sync_duration_seconds",
            "Time spent syncing Kubernetes resources",
            labelnames=["cluster_name", "namespace", "resource_type", "operation", "result"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            "etcdop_resource_sync_total",
            "Total number of resource sync operations",
            labelnames=["cluster_name", "namespace", "resource_type", "operation", "result"],
            registry=registry,
        )

        self.status_updates = Counter(
            "etcdop_status_updates_total",
            "Total number of status writes",
            labelnames=["cluster_name", "namespace", "result"],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    def on_reconcile_start(
        self,
        cluster_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        return {
            "start_time": time.time(),
            "trigger_source": trigger_source,
        }

    def on_reconcile_complete(
        self,
        cluster_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        if not state:
            return
        duration = time.time() - state["start_time"]
        result = "success" if success else "failure"
        labels = dict(
            cluster_name=cluster_name,
            namespace=namespace,
            trigger_source=state["trigger_source"],
            result=result,
        )
        self.reconcile_duration.labels(**labels).observe(duration)
        self.reconcile_total.labels(**labels).inc()

        if error:
            self.reconcile_errors.labels(
                cluster_name=cluster_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_resource_sync_start(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        return {"start_time": time.time()}

    def on_resource_sync_complete(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
    ) -> None:
        if not state:
            return
        duration = time.time() - state["start_time"]
        labels = dict(
            cluster_name=cluster_name,
            namespace=namespace,
            resource_type=resource_type,
            operation=operation,
            result="success" if success else "failure",
        )
        self.resource_sync_duration.labels(**labels).observe(duration)
        self.resource_sync_total.labels(**labels).inc()

    def on_status_update(
        self,
        cluster_name: str,
        namespace: str,
        conditions: List[Dict[str, Any]],
        written: bool,
    ) -> None:
        self.status_updates.labels(
            cluster_name=cluster_name,
            namespace=namespace,
            result="written" if written else "conflict",
        ).inc()
