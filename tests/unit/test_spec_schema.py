"""Unit tests for loading EtcdCluster specs."""

import pytest
from marshmallow import ValidationError

from etcd_operator.types.models import EtcdClusterSpec
from etcd_operator.types.schemas import EtcdClusterSpecSchema


class TestEtcdClusterSpecSchema:
    def test_full_spec(self):
        spec = EtcdClusterSpecSchema().load({"replicas": 5, "storage": {"size": "10Gi"}})
        assert isinstance(spec, EtcdClusterSpec)
        assert spec.replicas == 5
        assert spec.storage.size == "10Gi"

    def test_defaults(self):
        spec = EtcdClusterSpecSchema().load({})
        assert spec.replicas == 3
        assert spec.storage.size == "4Gi"

    def test_storage_without_size(self):
        spec = EtcdClusterSpecSchema().load({"replicas": 1, "storage": {}})
        assert spec.storage.size == "4Gi"

    def test_zero_replicas_allowed(self):
        assert EtcdClusterSpecSchema().load({"replicas": 0}).replicas == 0

    def test_negative_replicas_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            EtcdClusterSpecSchema().load({"replicas": -1})
        assert "replicas" in exc_info.value.messages

    @pytest.mark.parametrize("size", ["1Gi", "500Mi", "2G", "1.5Gi", "1e3"])
    def test_valid_quantities(self, size):
        assert EtcdClusterSpecSchema().load({"storage": {"size": size}}).storage.size == size

    @pytest.mark.parametrize("size", ["", "ten", "4 Gi", "4GiB"])
    def test_invalid_quantities(self, size):
        with pytest.raises(ValidationError):
            EtcdClusterSpecSchema().load({"storage": {"size": size}})
