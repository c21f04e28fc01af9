import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Seconds between periodic reconciles of every EtcdCluster.
#: Read once at import by the timer decorator, so it is not part of Settings.
RECONCILE_TIMER_INTERVAL_SECONDS = float(
    _getenv("RECONCILE_TIMER_INTERVAL_SECONDS", 60.0)
)

#: Seconds Kopf waits before redelivering a failed reconcile
RETRY_DELAY_SECONDS = float(_getenv("RETRY_DELAY_SECONDS", 10.0))

#: Deadline for a single reconcile pass; Kopf cancels the handler past it.
#: Read once at import by the handler decorators, so it is not part of Settings.
RECONCILE_TIMEOUT_SECONDS = float(_getenv("RECONCILE_TIMEOUT_SECONDS", 120.0))

#: Stamp lastTransitionTime on every condition write, even when status is unchanged
CONDITION_REFRESH_UNCHANGED = bool(_getenv("CONDITION_REFRESH_UNCHANGED", True))

#: Timeout in seconds for etcd health check calls, the default of `is_cluster_healthy`
HEALTH_CHECK_TIMEOUT_SECONDS = float(_getenv("HEALTH_CHECK_TIMEOUT_SECONDS", 2.0))

#: Maximum number of EtcdClusters Kopf reconciles concurrently
WORKER_LIMIT = int(_getenv("WORKER_LIMIT", 4))

#: Expose Prometheus metrics
METRICS_ENABLED = bool(_getenv("METRICS_ENABLED", True))


class Settings:
    """Operator settings"""

    retry_delay_seconds: float = RETRY_DELAY_SECONDS
    condition_refresh_unchanged: bool = CONDITION_REFRESH_UNCHANGED
    worker_limit: int = WORKER_LIMIT
    metrics_enabled: bool = METRICS_ENABLED

    def __init__(
        self,
        *args,
        retry_delay_seconds: float = None,
        condition_refresh_unchanged: bool = None,
        worker_limit: int = None,
        metrics_enabled: bool = None,
        **kwargs,
    ):
        if retry_delay_seconds is not None:
            self.retry_delay_seconds = retry_delay_seconds

        if condition_refresh_unchanged is not None:
            self.condition_refresh_unchanged = condition_refresh_unchanged

        if worker_limit is not None:
            self.worker_limit = worker_limit

        if metrics_enabled is not None:
            self.metrics_enabled = metrics_enabled
