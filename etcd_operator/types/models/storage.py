from etcd_operator.types.base import BaseModel


class EtcdClusterStorage(BaseModel):
    """etcd cluster storage configurations."""

    size: str
