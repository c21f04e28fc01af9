"""In-memory stand-ins for the Kubernetes APIs used by the operator."""

import copy
import json
from typing import Any, Dict, List, Optional, Tuple

from kubernetes_asyncio.client import ApiException


def api_exception(status: int, reason: str = "", message: str = "") -> ApiException:
    """Build an ApiException carrying a Status body, as the API server sends it."""
    ex = ApiException(status=status, reason=reason)
    ex.body = json.dumps(
        {
            "kind": "Status",
            "apiVersion": "v1",
            "status": "Failure",
            "reason": reason,
            "message": message or reason,
            "code": status,
        }
    )
    return ex


def cluster_body(
    name: str = "demo",
    namespace: str = "default",
    replicas: Optional[int] = 3,
    size: Optional[str] = "4Gi",
    uid: str = "0c9c5a4e-6f7b-4f0e-9b7a-demo",
    generation: int = 1,
) -> Dict:
    spec: Dict[str, Any] = {}
    if replicas is not None:
        spec["replicas"] = replicas
    if size is not None:
        spec["storage"] = {"size": size}
    return {
        "apiVersion": "etcd.aenix.io/v1alpha1",
        "kind": "EtcdCluster",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": uid,
            "generation": generation,
        },
        "spec": spec,
    }


class FakeStore:
    """Objects by (kind, namespace, name) with a global resourceVersion counter."""

    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, str, str], Any] = {}
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self._version = 0

    def next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def writes(self) -> List[str]:
        return [
            c for c in self.calls if c.startswith(("create_", "replace_"))
        ]

    def get(self, kind: str, namespace: str, name: str) -> Any:
        try:
            return copy.deepcopy(self.objects[(kind, namespace, name)])
        except KeyError:
            raise api_exception(404, "NotFound", f'{kind} "{name}" not found')

    def create(self, kind: str, namespace: str, body: Any) -> Any:
        key = (kind, namespace, body.metadata.name)
        if key in self.objects:
            raise api_exception(
                409, "AlreadyExists", f'{kind} "{body.metadata.name}" already exists'
            )
        obj = copy.deepcopy(body)
        obj.metadata.namespace = namespace
        obj.metadata.resource_version = self.next_version()
        self.objects[key] = obj
        return copy.deepcopy(obj)

    def replace(self, kind: str, namespace: str, name: str, body: Any) -> Any:
        current = self.get(kind, namespace, name)
        expected = body.metadata.resource_version
        if expected and expected != current.metadata.resource_version:
            raise api_exception(409, "Conflict", "the object has been modified")
        obj = copy.deepcopy(body)
        obj.metadata.resource_version = self.next_version()
        self.objects[(kind, namespace, name)] = obj
        return copy.deepcopy(obj)


class FakeCoreV1Api:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def read_namespaced_config_map(self, name, namespace, **kwargs):
        self.store.record("read_namespaced_config_map")
        return self.store.get("ConfigMap", namespace, name)

    async def create_namespaced_config_map(self, namespace, body, **kwargs):
        self.store.record("create_namespaced_config_map")
        return self.store.create("ConfigMap", namespace, body)

    async def read_namespaced_service(self, name, namespace, **kwargs):
        self.store.record("read_namespaced_service")
        return self.store.get("Service", namespace, name)

    async def create_namespaced_service(self, namespace, body, **kwargs):
        self.store.record("create_namespaced_service")
        return self.store.create("Service", namespace, body)


class FakeAppsV1Api:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def read_namespaced_stateful_set(self, name, namespace, **kwargs):
        self.store.record("read_namespaced_stateful_set")
        return self.store.get("StatefulSet", namespace, name)

    async def create_namespaced_stateful_set(self, namespace, body, **kwargs):
        self.store.record("create_namespaced_stateful_set")
        return self.store.create("StatefulSet", namespace, body)

    async def replace_namespaced_stateful_set(self, name, namespace, body, **kwargs):
        self.store.record("replace_namespaced_stateful_set")
        return self.store.replace("StatefulSet", namespace, name, body)


class FakeCustomObjectsApi:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    def seed(self, body: Dict) -> Dict:
        obj = copy.deepcopy(body)
        obj["metadata"]["resourceVersion"] = self.store.next_version()
        meta = obj["metadata"]
        self.store.objects[("EtcdCluster", meta["namespace"], meta["name"])] = obj
        return obj

    def current(self, namespace: str, name: str) -> Dict:
        return self.store.get("EtcdCluster", namespace, name)

    def touch(self, namespace: str, name: str) -> None:
        """Simulate a concurrent writer bumping the resourceVersion."""
        obj = self.store.objects[("EtcdCluster", namespace, name)]
        obj["metadata"]["resourceVersion"] = self.store.next_version()

    async def get_namespaced_custom_object(
        self, group, version, namespace, plural, name, **kwargs
    ):
        self.store.record("get_namespaced_custom_object")
        return self.store.get("EtcdCluster", namespace, name)

    async def replace_namespaced_custom_object_status(
        self, group, version, namespace, plural, name, body, **kwargs
    ):
        self.store.record("replace_namespaced_custom_object_status")
        current = self.store.get("EtcdCluster", namespace, name)
        expected = body["metadata"].get("resourceVersion")
        if expected != current["metadata"]["resourceVersion"]:
            raise api_exception(409, "Conflict", "the object has been modified")
        current["status"] = copy.deepcopy(body.get("status"))
        current["metadata"]["resourceVersion"] = self.store.next_version()
        self.store.objects[("EtcdCluster", namespace, name)] = current
        return copy.deepcopy(current)


class FakeKubernetes:
    def __init__(self) -> None:
        self.store = FakeStore()
        self.core = FakeCoreV1Api(self.store)
        self.apps = FakeAppsV1Api(self.store)
        self.custom = FakeCustomObjectsApi(self.store)

    def config_map(self, namespace: str, name: str):
        return self.store.get("ConfigMap", namespace, name)

    def service(self, namespace: str, name: str):
        return self.store.get("Service", namespace, name)

    def stateful_set(self, namespace: str, name: str):
        return self.store.get("StatefulSet", namespace, name)

    def has(self, kind: str, namespace: str, name: str) -> bool:
        return (kind, namespace, name) in self.store.objects

