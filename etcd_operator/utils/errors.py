import asyncio
import json
import aiohttp
import kopf
from enum import Enum
from kubernetes_asyncio.client import ApiException

_NOT_FOUND = "notfound"
_CONFLICT = "conflict"

# Failures of one I/O call that the next pass may not hit again
TRANSIENT_ERRORS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError)


class ResourceOperationError(Exception):
    """A Kubernetes operation on an owned resource failed.

    The message carries the operation that failed (e.g. "cannot create statefulset")
    followed by the underlying cause.
    """

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation}: {cause}" if cause is not None else operation
        super().__init__(message)


class OwnershipError(ResourceOperationError):
    """Owner reference could not be built for a child resource."""


class ReconcileError(Exception):
    """A reconcile pass failed and must be redelivered."""


class ErrorAction(Enum):
    """What the reconcile loop does with an error."""

    RETRY_SILENTLY = "retry-silently"
    PROPAGATE = "propagate"


def _status_reason(ex: ApiException) -> str:
    """Return the lowercased `reason` of the Status object carried in the body."""
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (TypeError, ValueError):
        return ""
    if not isinstance(err, dict):
        return ""
    return (err.get("reason") or "").lower()


def not_found_error(ex: Exception) -> bool:
    if not isinstance(ex, ApiException):
        return False
    return ex.status == 404 or _status_reason(ex) == _NOT_FOUND


def conflict_error(ex: Exception) -> bool:
    """True for optimistic-concurrency failures (stale resourceVersion)."""
    if not isinstance(ex, ApiException):
        return False
    if ex.status != 409:
        return False
    return _status_reason(ex) in (_CONFLICT, "")


def classify(error: Exception) -> ErrorAction:
    """Decide whether an error may be dropped in favour of the next delivered event.

    Only optimistic-concurrency conflicts qualify: whoever won the write produced a
    newer version of the object, and that change triggers another reconcile.
    """
    if conflict_error(error):
        return ErrorAction.RETRY_SILENTLY
    return ErrorAction.PROPAGATE


def describe_api_exception(ex: ApiException) -> str:
    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if isinstance(body, dict) and "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (TypeError, ValueError):
        pass
    return error_msg


def convert_api_exception(ex: ApiException, delay: float) -> kopf.TemporaryError:
    """Convert a kubernetes ApiException into a retryable Kopf error.

    Every API failure is redelivered; there is no permanent class of API error for
    a reconcile pass.
    """
    return kopf.TemporaryError(describe_api_exception(ex), delay=delay)
