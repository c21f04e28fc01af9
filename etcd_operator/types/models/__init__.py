from .storage import EtcdClusterStorage
from .etcdcluster_spec import EtcdClusterSpec
from .etcdcluster_resources import EtcdClusterResources

__all__ = ["EtcdClusterStorage", "EtcdClusterSpec", "EtcdClusterResources"]
