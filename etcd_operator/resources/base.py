from contextlib import asynccontextmanager
from functools import cached_property
from typing import Dict, Optional
from etcd_operator.common.models.labels import Labels
from etcd_operator.sensors import SensorDelegate
from etcd_operator.utils.errors import not_found_error
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CoreV1Api,
    CustomObjectsApi,
    V1ConfigMap,
    V1Service,
    V1StatefulSet,
)
from kubernetes_asyncio.client.api_client import ApiClient


class BaseResource:
    """Base resource model."""

    OPERATOR_NAME = "etcd-operator"

    # Shared across all resource instances, set on operator startup
    shared_api_client: ApiClient = None
    sensor: Optional[SensorDelegate] = None

    _cluster: str
    _namespace: str
    _labels: Labels

    # k8s apis
    _api_client: ApiClient = None
    _core_v1_api: CoreV1Api = None
    _apps_v1_api: AppsV1Api = None
    _custom_objects_api: CustomObjectsApi = None

    def __init__(self, cluster: str, namespace: str, labels: Labels):
        self._cluster = cluster
        self._namespace = namespace
        self._labels = labels

    @property
    def cluster(self) -> str:
        return self._cluster

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def labels(self) -> Labels:
        return self._labels

    @cached_property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            # Use the shared API client if available, otherwise create a new one
            if self.shared_api_client is not None:
                self._api_client = self.shared_api_client
            else:
                self._api_client = ApiClient()
        return self._api_client

    @cached_property
    def core_v1_api(self) -> CoreV1Api:
        if self._core_v1_api is None:
            self._core_v1_api = CoreV1Api(self.api_client)
        return self._core_v1_api

    @cached_property
    def apps_v1_api(self) -> AppsV1Api:
        if self._apps_v1_api is None:
            self._apps_v1_api = AppsV1Api(self.api_client)
        return self._apps_v1_api

    @cached_property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api

    @asynccontextmanager
    async def instrument_sync(
        self, resource_type: str, resource_name: str, operation: str
    ):
        """Report a create/replace of a child resource to the sensor, if any."""
        if self.sensor is None:
            yield
            return
        state = self.sensor.on_resource_sync_start(
            self.cluster, resource_name, self.namespace, resource_type
        )
        success = False
        try:
            yield
            success = True
        finally:
            self.sensor.on_resource_sync_complete(
                self.cluster,
                resource_name,
                self.namespace,
                resource_type,
                state,
                operation,
                success,
            )

    async def fetch_config_map(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> Optional[V1ConfigMap]:
        try:
            return await core_v1_api.read_namespaced_config_map(
                name=name, namespace=namespace
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_config_map(
        self, core_v1_api: CoreV1Api, namespace: str, config_map: V1ConfigMap
    ) -> V1ConfigMap:
        return await core_v1_api.create_namespaced_config_map(
            namespace=namespace, body=config_map
        )

    async def fetch_service(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> Optional[V1Service]:
        """Retrieve the latest state of a service"""
        try:
            return await core_v1_api.read_namespaced_service(
                name=name, namespace=namespace
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_service(
        self, core_v1_api: CoreV1Api, namespace: str, service: V1Service
    ) -> V1Service:
        return await core_v1_api.create_namespaced_service(
            namespace=namespace, body=service
        )

    async def fetch_stateful_set(
        self, apps_v1_api: AppsV1Api, name: str, namespace: str
    ) -> Optional[V1StatefulSet]:
        try:
            return await apps_v1_api.read_namespaced_stateful_set(
                name=name, namespace=namespace
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_stateful_set(
        self, apps_v1_api: AppsV1Api, namespace: str, stateful_set: V1StatefulSet
    ) -> V1StatefulSet:
        return await apps_v1_api.create_namespaced_stateful_set(
            namespace=namespace, body=stateful_set
        )

    async def replace_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        stateful_set: V1StatefulSet,
    ) -> V1StatefulSet:
        return await apps_v1_api.replace_namespaced_stateful_set(
            name=name, namespace=namespace, body=stateful_set
        )

    async def get_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
    ) -> Optional[Dict]:
        try:
            return await custom_objects_api.get_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def replace_custom_object_status(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        body: Dict,
    ) -> Dict:
        return await custom_objects_api.replace_namespaced_custom_object_status(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body=body,
        )
