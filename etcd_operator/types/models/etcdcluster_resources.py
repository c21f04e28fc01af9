class EtcdClusterResources:
    """Encapsulates the naming scheme used for the resources which the etcd operator
    manages for an EtcdCluster."""

    PEER_PORT = 2380
    CLIENT_PORT = 2379

    @classmethod
    def cluster_state_config_map_name(self, cluster_name: str):
        """Returns the name of the ConfigMap holding the initial cluster state."""
        return f"{cluster_name}-cluster-state"

    @classmethod
    def service_name(self, cluster_name: str):
        """Returns the name of the headless service used for peer discovery."""
        return cluster_name

    @classmethod
    def stateful_set_name(self, cluster_name: str):
        return cluster_name

    @classmethod
    def pod_name(self, cluster_name: str, index: int):
        return f"{cluster_name}-{index}"

    @classmethod
    def pod_fqdn(self, cluster_name: str, namespace: str, index: int):
        """Returns the DNS name a member gets through the headless service."""
        return f"{self.pod_name(cluster_name, index)}.{self.service_name(cluster_name)}.{namespace}.svc"

    @classmethod
    def peer_url(self, cluster_name: str, namespace: str, index: int):
        return f"https://{self.pod_fqdn(cluster_name, namespace, index)}:{self.PEER_PORT}"

    @classmethod
    def initial_cluster_token(self, cluster_name: str, namespace: str):
        return f"{cluster_name}-{namespace}"

    @classmethod
    def initial_cluster(self, cluster_name: str, namespace: str, replicas: int) -> str:
        """Returns the `--initial-cluster` value bootstrapping `replicas` members.

        Members are listed in ascending ordinal order, e.g. for two replicas:
        ``demo-0=https://demo-0.demo.default.svc:2380,demo-1=https://demo-1.demo.default.svc:2380``
        """
        if replicas < 0:
            raise ValueError(f"Replica count must not be negative, got {replicas}.")
        return ",".join(
            f"{self.pod_name(cluster_name, i)}={self.peer_url(cluster_name, namespace, i)}"
            for i in range(replicas)
        )
