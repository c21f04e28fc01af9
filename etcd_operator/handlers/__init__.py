from etcd_operator.handlers import etcdcluster, probes

__all__ = ["etcdcluster", "probes"]
