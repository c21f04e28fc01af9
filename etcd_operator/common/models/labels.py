from typing import Dict


class Labels:
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_NAME_LABEL = KUBERNETES_DOMAIN + "name"

    KUBERNETES_INSTANCE_LABEL = KUBERNETES_DOMAIN + "instance"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    APPLICATION_NAME = "etcd"

    OPERATOR_NAME = "etcd-operator"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = labels if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return a copy of the labels as a dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_kubernetes_name(self, name: str) -> "Labels":
        return self.include(self.KUBERNETES_NAME_LABEL, name)

    def include_kubernetes_instance(self, instance_name: str) -> "Labels":
        return self.include(self.KUBERNETES_INSTANCE_LABEL, instance_name)

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def for_cluster(cls, cluster_name: str) -> "Labels":
        """Labels selecting the members of one etcd cluster.

        The same set is used as service selector, stateful set selector and pod labels,
        so it must stay stable for the lifetime of a cluster.
        """
        return (
            Labels()
            .include_kubernetes_name(cls.APPLICATION_NAME)
            .include_kubernetes_instance(cluster_name)
            .include_kubernetes_managed_by(cls.OPERATOR_NAME)
        )
