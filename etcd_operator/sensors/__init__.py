"""etcd operator sensor framework.

Non-invasive instrumentation of operator lifecycle events through hooks:

- OperatorSensor: base class defining the lifecycle hooks
- SensorDelegate: fan-out of events to several sensor backends
- PrometheusMonitor: Prometheus metrics backend
"""

from etcd_operator.sensors.base import OperatorSensor
from etcd_operator.sensors.delegate import SensorDelegate
from etcd_operator.sensors.prometheus import PrometheusMonitor
from etcd_operator.sensors.server import init_metrics_server

__all__ = [
    "OperatorSensor",
    "SensorDelegate",
    "PrometheusMonitor",
    "init_metrics_server",
]
