import logging

import pytest

from etcd_operator.handlers.etcdcluster import reconciliation_locks
from etcd_operator.resources.base import BaseResource
from k8s_fakes import FakeKubernetes


@pytest.fixture
def k8s(monkeypatch) -> FakeKubernetes:
    """Point every resource at an in-memory API server."""
    fake = FakeKubernetes()
    monkeypatch.setattr(BaseResource, "_core_v1_api", fake.core)
    monkeypatch.setattr(BaseResource, "_apps_v1_api", fake.apps)
    monkeypatch.setattr(BaseResource, "_custom_objects_api", fake.custom)
    monkeypatch.setattr(BaseResource, "sensor", None)
    return fake


@pytest.fixture(autouse=True)
def fresh_locks():
    """Locks bind to the event loop of the test that first contends on them."""
    reconciliation_locks.clear()
    yield
    reconciliation_locks.clear()


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("etcd_operator.tests")
