"""Unit tests for sensor fan-out and the Prometheus backend."""

import pytest
from unittest.mock import Mock
from prometheus_client import CollectorRegistry

from etcd_operator.sensors import OperatorSensor, PrometheusMonitor, SensorDelegate
from etcd_operator.resources.base import BaseResource
from etcd_operator.common.models.labels import Labels


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def monitor(registry):
    return PrometheusMonitor(registry=registry)


class TestSensorDelegate:
    def test_fans_out_with_per_sensor_state(self):
        first, second = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        first.on_reconcile_start.return_value = {"id": 1}
        second.on_reconcile_start.return_value = {"id": 2}
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        state = delegate.on_reconcile_start("demo", "default", "timer")
        delegate.on_reconcile_complete("demo", "default", state, True)

        first.on_reconcile_complete.assert_called_once_with(
            "demo", "default", {"id": 1}, True, None
        )
        second.on_reconcile_complete.assert_called_once_with(
            "demo", "default", {"id": 2}, True, None
        )

    def test_complete_without_state(self):
        sensor = Mock(spec=OperatorSensor)
        delegate = SensorDelegate()
        delegate.add(sensor)
        delegate.on_resource_sync_complete(
            "demo", "demo", "default", "service", None, "create", False
        )
        sensor.on_resource_sync_complete.assert_called_once_with(
            "demo", "demo", "default", "service", None, "create", False
        )

    def test_add_remove_clear(self):
        delegate = SensorDelegate()
        sensor = OperatorSensor()
        delegate.add(sensor)
        delegate.add(sensor)
        assert len(delegate) == 1
        delegate.remove(sensor)
        assert len(delegate) == 0
        delegate.add(OperatorSensor())
        delegate.clear()
        assert len(delegate) == 0


class TestPrometheusMonitor:
    def test_reconcile_metrics(self, monitor, registry):
        state = monitor.on_reconcile_start("demo", "default", "create")
        monitor.on_reconcile_complete("demo", "default", state, False, RuntimeError("x"))

        labels = {
            "cluster_name": "demo",
            "namespace": "default",
            "trigger_source": "create",
            "result": "failure",
        }
        assert registry.get_sample_value("etcdop_reconcile_total", labels) == 1.0
        assert registry.get_sample_value("etcdop_reconcile_duration_seconds_count", labels) == 1.0
        assert (
            registry.get_sample_value(
                "etcdop_reconcile_errors_total",
                {"cluster_name": "demo", "namespace": "default", "error_type": "RuntimeError"},
            )
            == 1.0
        )

    def test_resource_sync_metrics(self, monitor, registry):
        state = monitor.on_resource_sync_start("demo", "demo", "default", "stateful_set")
        monitor.on_resource_sync_complete(
            "demo", "demo", "default", "stateful_set", state, "update", True
        )
        labels = {
            "cluster_name": "demo",
            "namespace": "default",
            "resource_type": "stateful_set",
            "operation": "update",
            "result": "success",
        }
        assert registry.get_sample_value("etcdop_resource_sync_total", labels) == 1.0

    def test_status_updates(self, monitor, registry):
        monitor.on_status_update("demo", "default", [], True)
        monitor.on_status_update("demo", "default", [], False)
        monitor.on_status_update("demo", "default", [], False)
        base = {"cluster_name": "demo", "namespace": "default"}
        assert registry.get_sample_value(
            "etcdop_status_updates_total", {**base, "result": "written"}
        ) == 1.0
        assert registry.get_sample_value(
            "etcdop_status_updates_total", {**base, "result": "conflict"}
        ) == 2.0

    def test_missing_state_ignored(self, monitor, registry):
        monitor.on_reconcile_complete("demo", "default", None, True)
        assert registry.get_sample_value(
            "etcdop_reconcile_total",
            {
                "cluster_name": "demo",
                "namespace": "default",
                "trigger_source": "create",
                "result": "success",
            },
        ) is None


class TestInstrumentSync:
    @pytest.mark.asyncio
    async def test_failure_reported(self, monkeypatch):
        sensor = Mock(spec=OperatorSensor)
        sensor.on_resource_sync_start.return_value = {"start_time": 0}
        monkeypatch.setattr(BaseResource, "sensor", sensor)
        resource = BaseResource("demo", "default", Labels.for_cluster("demo"))

        with pytest.raises(RuntimeError):
            async with resource.instrument_sync("service", "demo", "create"):
                raise RuntimeError("boom")

        sensor.on_resource_sync_complete.assert_called_once_with(
            "demo", "demo", "default", "service", {"start_time": 0}, "create", False
        )

    @pytest.mark.asyncio
    async def test_without_sensor(self, monkeypatch):
        monkeypatch.setattr(BaseResource, "sensor", None)
        resource = BaseResource("demo", "default", Labels.for_cluster("demo"))
        async with resource.instrument_sync("service", "demo", "create"):
            pass
