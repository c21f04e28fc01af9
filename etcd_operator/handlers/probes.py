import kopf
from etcd_operator.handlers.etcdcluster import reconciliation_locks
from etcd_operator.utils.helpers import now


# Liveness probe
@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return now()


@kopf.on.probe(id="tracked_clusters")
def get_tracked_clusters(**kwargs):
    """Number of clusters with a reconcile lock, i.e. seen since start."""
    return len(reconciliation_locks)
