"""Sensor delegation for fan-out pattern.

SensorDelegate routes sensor events to multiple monitoring backends.
Each backend receives the same events and keeps its own state.
"""

from typing import Any, Dict, List, Optional, Set
import logging

from etcd_operator.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    State tracking is per-sensor: start hooks return a dict keyed by sensor,
    and complete hooks hand every sensor back its own state.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("demo", "default", "timer")
        delegate.on_reconcile_complete("demo", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def __len__(self) -> int:
        return len(self._sensors)

    def on_reconcile_start(
        self,
        cluster_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return {
            sensor: sensor.on_reconcile_start(cluster_name, namespace, trigger_source)
            for sensor in self._sensors
        }

    def on_reconcile_complete(
        self,
        cluster_name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        state = state or {}
        for sensor in self._sensors:
            sensor.on_reconcile_complete(
                cluster_name, namespace, state.get(sensor), success, error
            )

    def on_resource_sync_start(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return {
            sensor: sensor.on_resource_sync_start(
                cluster_name, resource_name, namespace, resource_type
            )
            for sensor in self._sensors
        }

    def on_resource_sync_complete(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        operation: str,
        success: bool,
    ) -> None:
        state = state or {}
        for sensor in self._sensors:
            sensor.on_resource_sync_complete(
                cluster_name,
                resource_name,
                namespace,
                resource_type,
                state.get(sensor),
                operation,
                success,
            )

    def on_status_update(
        self,
        cluster_name: str,
        namespace: str,
        conditions: List[Dict[str, Any]],
        written: bool,
    ) -> None:
        for sensor in self._sensors:
            sensor.on_status_update(cluster_name, namespace, conditions, written)
