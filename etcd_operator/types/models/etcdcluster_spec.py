from etcd_operator.types.base import BaseModel
from etcd_operator.types.models.storage import EtcdClusterStorage


class EtcdClusterSpec(BaseModel):
    """EtcdCluster CRD spec"""

    replicas: int
    storage: EtcdClusterStorage
