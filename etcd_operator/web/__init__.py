from .client import EtcdClient, is_cluster_healthy
from .session import SessionManager

__all__ = ["EtcdClient", "SessionManager", "is_cluster_healthy"]
