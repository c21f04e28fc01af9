from .etcdcluster import EtcdCluster

__all__ = ["EtcdCluster"]
