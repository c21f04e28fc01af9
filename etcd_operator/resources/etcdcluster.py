import copy
import kopf
import logging
from logging import Logger
from typing import Dict, List, Optional
from etcd_operator.types.settings import Settings
from etcd_operator.types.models import EtcdClusterSpec, EtcdClusterResources
from etcd_operator.common.models.labels import Labels
from etcd_operator.resources.base import BaseResource
from etcd_operator.utils.errors import (
    TRANSIENT_ERRORS,
    OwnershipError,
    ResourceOperationError,
)
from kubernetes_asyncio.client import (
    V1ConfigMap,
    V1ConfigMapEnvSource,
    V1Container,
    V1ContainerPort,
    V1EmptyDirVolumeSource,
    V1EnvFromSource,
    V1EnvVar,
    V1EnvVarSource,
    V1HTTPGetAction,
    V1LabelSelector,
    V1ObjectFieldSelector,
    V1ObjectMeta,
    V1OwnerReference,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Probe,
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
    V1StatefulSet,
    V1StatefulSetSpec,
    V1Volume,
    V1VolumeMount,
)


class EtcdCluster(BaseResource):
    """EtcdCluster kubernetes resource.

    One instance is built per reconcile pass from the freshly loaded object. It
    knows how to build the three owned children (cluster state config map,
    headless service, stateful set) and how to bring them into existence.
    """

    logger: Logger
    conf: Settings

    KIND = "EtcdCluster"
    GROUP_NAME = "etcd.aenix.io"
    GROUP_VERSION = "v1alpha1"
    PLURAL_NAME = "etcdclusters"

    ETCD_IMAGE = "quay.io/coreos/etcd:v3.5.12"
    ETCD_CONTAINER_NAME = "etcd"
    PEER_PORT_NAME = "peer"
    CLIENT_PORT_NAME = "client"
    DATA_VOLUME_NAME = "data"
    DATA_DIR = "/var/run/etcd"
    HEALTH_PATH = "/health"
    PROBE_INITIAL_DELAY_SECONDS = 5
    PROBE_PERIOD_SECONDS = 5
    POD_MANAGEMENT_POLICY = "Parallel"
    INITIAL_CLUSTER_STATE_KEY = "ETCD_INITIAL_CLUSTER_STATE"
    INITIAL_CLUSTER_STATE_NEW = "new"

    replicas: int
    storage_size: str
    cluster_state_config_map_name: str
    service_name: str
    stateful_set_name: str

    # loaded EtcdCluster object, owner of every child
    body: Dict = None

    def __init__(self, name: str, namespace: str):
        super().__init__(
            cluster=name,
            namespace=namespace,
            labels=Labels.for_cluster(name),
        )
        self.cluster_state_config_map_name = (
            EtcdClusterResources.cluster_state_config_map_name(name)
        )
        self.service_name = EtcdClusterResources.service_name(name)
        self.stateful_set_name = EtcdClusterResources.stateful_set_name(name)

    @classmethod
    def default(
        cls,
        name: str,
        namespace: str,
        logger: Logger = None,
        conf: Settings = None,
    ) -> "EtcdCluster":
        """A handle on an EtcdCluster that has not been loaded yet."""
        cluster = EtcdCluster(name, namespace)
        cluster.logger = logger or logging.getLogger(__name__)
        cluster.conf = conf or Settings()
        return cluster

    @classmethod
    def from_body(
        cls,
        body: Dict,
        spec: EtcdClusterSpec,
        logger: Logger = None,
        conf: Settings = None,
    ) -> "EtcdCluster":
        metadata = body.get("metadata") or {}
        cluster = cls.default(
            metadata.get("name"), metadata.get("namespace"), logger, conf
        )
        cluster.body = body
        cluster.replicas = spec.replicas
        cluster.storage_size = spec.storage.size
        return cluster

    @property
    def generation(self) -> Optional[int]:
        return (self.body or {}).get("metadata", {}).get("generation")

    @property
    def conditions(self) -> List[Dict]:
        return list(((self.body or {}).get("status") or {}).get("conditions") or [])

    async def fetch(self) -> Optional[Dict]:
        """Load the EtcdCluster object; None when it does not exist."""
        return await self.get_custom_object(
            self.custom_objects_api,
            namespace=self.namespace,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
            name=self.cluster,
        )

    async def write_status(self, conditions: List[Dict]) -> Dict:
        """Replace the status subresource, guarded by the loaded resourceVersion."""
        body = copy.deepcopy(self.body)
        status = body.get("status") or {}
        status["conditions"] = conditions
        body["status"] = status
        return await self.replace_custom_object_status(
            self.custom_objects_api,
            namespace=self.namespace,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
            name=self.cluster,
            body=body,
        )

    async def ensure_all(self) -> V1StatefulSet:
        """Ensure every owned child exists, in dependency order.

        Stops at the first failure; whatever was created before stays in place
        and is picked up by the next pass.
        """
        cluster_state = await self.ensure_cluster_state_config_map()
        await self.ensure_service()
        return await self.ensure_stateful_set(cluster_state)

    async def ensure_cluster_state_config_map(self) -> V1ConfigMap:
        try:
            config_map = await self.fetch_config_map(
                self.core_v1_api, self.cluster_state_config_map_name, self.namespace
            )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError(
                "cannot get cluster state configmap", ex
            ) from ex
        if config_map is not None:
            return config_map

        config_map = self.prepare_cluster_state_config_map()
        try:
            async with self.instrument_sync(
                "config_map", self.cluster_state_config_map_name, "create"
            ):
                config_map = await self.create_config_map(
                    self.core_v1_api, self.namespace, config_map
                )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError(
                "cannot create cluster state configmap", ex
            ) from ex
        self.logger.info(
            f"Created ConfigMap `{self.cluster_state_config_map_name}` in `{self.namespace}` namespace."
        )
        return config_map

    async def ensure_service(self) -> V1Service:
        """Create the headless service if missing. An existing service is left as is."""
        try:
            service = await self.fetch_service(
                self.core_v1_api, self.service_name, self.namespace
            )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError("cannot get cluster service", ex) from ex
        if service is not None:
            return service

        service = self.prepare_service()
        try:
            async with self.instrument_sync("service", self.service_name, "create"):
                service = await self.create_service(
                    self.core_v1_api, self.namespace, service
                )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError("cannot create cluster service", ex) from ex
        self.logger.info(
            f"Created Service `{self.service_name}` in `{self.namespace}` namespace."
        )
        return service

    async def ensure_stateful_set(self, cluster_state: V1ConfigMap) -> V1StatefulSet:
        """Create the stateful set, or carry the storage size over to the existing one.

        Replicas, selector and the bootstrap command of an existing stateful set are
        never touched; only the size limit of the data volume follows the spec.
        """
        try:
            stateful_set = await self.fetch_stateful_set(
                self.apps_v1_api, self.stateful_set_name, self.namespace
            )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError("cannot get cluster statefulset", ex) from ex

        if stateful_set is None:
            stateful_set = self.prepare_stateful_set(cluster_state)
            self.apply_storage_size(stateful_set)
            try:
                async with self.instrument_sync(
                    "stateful_set", self.stateful_set_name, "create"
                ):
                    stateful_set = await self.create_stateful_set(
                        self.apps_v1_api, self.namespace, stateful_set
                    )
            except TRANSIENT_ERRORS as ex:
                raise ResourceOperationError("cannot create statefulset", ex) from ex
            self.logger.info(
                f"Created StatefulSet `{self.stateful_set_name}` in `{self.namespace}` namespace."
            )
            return stateful_set

        self.apply_storage_size(stateful_set)
        try:
            async with self.instrument_sync(
                "stateful_set", self.stateful_set_name, "update"
            ):
                stateful_set = await self.replace_stateful_set(
                    self.apps_v1_api,
                    self.stateful_set_name,
                    self.namespace,
                    stateful_set,
                )
        except TRANSIENT_ERRORS as ex:
            raise ResourceOperationError("cannot update statefulset", ex) from ex
        self.logger.debug(
            f"Updated StatefulSet `{self.stateful_set_name}` in `{self.namespace}` namespace."
        )
        return stateful_set

    def apply_storage_size(self, stateful_set: V1StatefulSet) -> None:
        volumes = stateful_set.spec.template.spec.volumes or []
        for volume in volumes:
            if volume.name == self.DATA_VOLUME_NAME and volume.empty_dir is not None:
                volume.empty_dir.size_limit = self.storage_size

    def prepare_owner_reference(self) -> V1OwnerReference:
        body = self.body or {}
        metadata = body.get("metadata") or {}
        if not (
            body.get("apiVersion")
            and body.get("kind")
            and metadata.get("name")
            and metadata.get("uid")
        ):
            raise OwnershipError(
                "cannot set controller reference",
                ValueError(f"owner `{self.cluster}` lacks apiVersion, kind, name or uid"),
            )
        ref = kopf.build_owner_reference(body)
        return V1OwnerReference(
            api_version=ref["apiVersion"],
            kind=ref["kind"],
            name=ref["name"],
            uid=ref["uid"],
            controller=ref["controller"],
            block_owner_deletion=ref["blockOwnerDeletion"],
        )

    def prepare_cluster_state_config_map(self) -> V1ConfigMap:
        return V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=V1ObjectMeta(
                name=self.cluster_state_config_map_name,
                namespace=self.namespace,
                owner_references=[self.prepare_owner_reference()],
            ),
            data={self.INITIAL_CLUSTER_STATE_KEY: self.INITIAL_CLUSTER_STATE_NEW},
        )

    def prepare_service(self) -> V1Service:
        return V1Service(
            api_version="v1",
            kind="Service",
            metadata=V1ObjectMeta(
                name=self.service_name,
                namespace=self.namespace,
                labels=self.labels.as_dict(),
                owner_references=[self.prepare_owner_reference()],
            ),
            spec=V1ServiceSpec(
                type="ClusterIP",
                cluster_ip="None",
                publish_not_ready_addresses=True,
                selector=self.labels.as_dict(),
                ports=[
                    V1ServicePort(
                        name=self.PEER_PORT_NAME,
                        port=EtcdClusterResources.PEER_PORT,
                        target_port=EtcdClusterResources.PEER_PORT,
                        protocol="TCP",
                    ),
                    V1ServicePort(
                        name=self.CLIENT_PORT_NAME,
                        port=EtcdClusterResources.CLIENT_PORT,
                        target_port=EtcdClusterResources.CLIENT_PORT,
                        protocol="TCP",
                    ),
                ],
            ),
        )

    def prepare_stateful_set(self, cluster_state: V1ConfigMap) -> V1StatefulSet:
        return V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=V1ObjectMeta(
                name=self.stateful_set_name,
                namespace=self.namespace,
                owner_references=[self.prepare_owner_reference()],
            ),
            spec=V1StatefulSetSpec(
                replicas=self.replicas,
                service_name=self.service_name,
                pod_management_policy=self.POD_MANAGEMENT_POLICY,
                selector=V1LabelSelector(match_labels=self.labels.as_dict()),
                template=V1PodTemplateSpec(
                    metadata=V1ObjectMeta(labels=self.labels.as_dict()),
                    spec=V1PodSpec(
                        containers=[self.prepare_etcd_container(cluster_state)],
                        volumes=[
                            V1Volume(
                                name=self.DATA_VOLUME_NAME,
                                empty_dir=V1EmptyDirVolumeSource(
                                    size_limit=self.storage_size
                                ),
                            )
                        ],
                    ),
                ),
            ),
        )

    def prepare_etcd_container(self, cluster_state: V1ConfigMap) -> V1Container:
        return V1Container(
            name=self.ETCD_CONTAINER_NAME,
            image=self.ETCD_IMAGE,
            command=self.prepare_command(),
            ports=[
                V1ContainerPort(
                    name=self.PEER_PORT_NAME,
                    container_port=EtcdClusterResources.PEER_PORT,
                ),
                V1ContainerPort(
                    name=self.CLIENT_PORT_NAME,
                    container_port=EtcdClusterResources.CLIENT_PORT,
                ),
            ],
            env_from=[
                V1EnvFromSource(
                    config_map_ref=V1ConfigMapEnvSource(
                        name=cluster_state.metadata.name
                    )
                )
            ],
            env=[
                self.prepare_field_env_var("POD_NAME", "metadata.name"),
                self.prepare_field_env_var("POD_NAMESPACE", "metadata.namespace"),
            ],
            volume_mounts=[
                V1VolumeMount(name=self.DATA_VOLUME_NAME, mount_path=self.DATA_DIR)
            ],
            liveness_probe=self.prepare_probe(),
            readiness_probe=self.prepare_probe(),
        )

    def prepare_command(self) -> List[str]:
        """The etcd command line of a member.

        $(POD_NAME) and $(POD_NAMESPACE) are expanded by the kubelet from the
        container environment.
        """
        peer_port = EtcdClusterResources.PEER_PORT
        client_port = EtcdClusterResources.CLIENT_PORT
        member_host = f"$(POD_NAME).{self.service_name}.$(POD_NAMESPACE).svc"
        initial_cluster = EtcdClusterResources.initial_cluster(
            self.cluster, self.namespace, self.replicas
        )
        token = EtcdClusterResources.initial_cluster_token(self.cluster, self.namespace)
        return [
            "etcd",
            "--name=$(POD_NAME)",
            f"--listen-peer-urls=https://0.0.0.0:{peer_port}",
            f"--listen-client-urls=http://0.0.0.0:{client_port}",
            f"--initial-advertise-peer-urls=https://{member_host}:{peer_port}",
            f"--data-dir={self.DATA_DIR}/default.etcd",
            f"--initial-cluster={initial_cluster}",
            f"--initial-cluster-token={token}",
            "--auto-tls",
            "--peer-auto-tls",
            f"--advertise-client-urls=http://{member_host}:{client_port}",
        ]

    def prepare_field_env_var(self, name: str, field_path: str) -> V1EnvVar:
        return V1EnvVar(
            name=name,
            value_from=V1EnvVarSource(
                field_ref=V1ObjectFieldSelector(field_path=field_path)
            ),
        )

    def prepare_probe(self) -> V1Probe:
        return V1Probe(
            http_get=V1HTTPGetAction(
                path=self.HEALTH_PATH, port=EtcdClusterResources.CLIENT_PORT
            ),
            initial_delay_seconds=self.PROBE_INITIAL_DELAY_SECONDS,
            period_seconds=self.PROBE_PERIOD_SECONDS,
        )
