from .storage import EtcdClusterStorageSchema
from .etcdcluster_spec import EtcdClusterSpecSchema

__all__ = ["EtcdClusterStorageSchema", "EtcdClusterSpecSchema"]
