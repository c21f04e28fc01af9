from datetime import datetime, timezone

#: Timestamp layout used by Kubernetes for metav1.Time fields
K8S_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now() -> str:
    """Current time formatted as a Kubernetes timestamp (RFC 3339, second precision)."""
    return utc_now().strftime(K8S_TIME_FORMAT)
