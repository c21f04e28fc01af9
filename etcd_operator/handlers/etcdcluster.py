import asyncio
import aiohttp
import kopf
from enum import Enum
from logging import Logger
from collections import defaultdict
from typing import Dict, List, Optional, Tuple
from marshmallow import ValidationError
from kubernetes_asyncio.client import ApiException
from etcd_operator.types.settings import (
    Settings,
    RECONCILE_TIMER_INTERVAL_SECONDS,
    RECONCILE_TIMEOUT_SECONDS,
)
from etcd_operator.types.models import EtcdClusterSpec
from etcd_operator.types.schemas import EtcdClusterSpecSchema
from etcd_operator.resources import EtcdCluster
from etcd_operator.utils.conditions import (
    CONDITION_INITIALIZED,
    STATUS_FALSE,
    STATUS_TRUE,
    REASON_INITIALIZATION_STARTED,
    REASON_INITIALIZATION_COMPLETE,
    MESSAGE_INITIALIZATION_STARTED,
    MESSAGE_INITIALIZATION_COMPLETE,
    find_condition,
    upsert_condition,
)
from etcd_operator.utils.errors import (
    ErrorAction,
    ReconcileError,
    ResourceOperationError,
    classify,
    convert_api_exception,
)

CLUSTER_KIND = EtcdCluster.KIND
CLUSTER_GROUP = EtcdCluster.GROUP_NAME

# Timers are not serialized with change handlers, so passes on one cluster are
# serialized here, keyed by (namespace, name).
reconciliation_locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)


class ReconcileResult(Enum):
    NOT_FOUND = "not-found"
    DELETING = "deleting"
    RECONCILED = "reconciled"


def get_sensor():
    """Get sensor from EtcdCluster class.

    Returns:
        Sensor instance or None
    """
    return getattr(EtcdCluster, "sensor", None)


class StatusWriter:
    """Tracks the conditions of one reconcile pass and writes them on exit.

    The write happens whether the block succeeded or raised. A write that loses
    an optimistic-concurrency race is dropped; the winning write triggers another
    pass. When the block already failed, a failed write is only logged so the
    original error is what the caller sees. A cancelled pass writes nothing.
    """

    def __init__(self, cluster: EtcdCluster, logger: Logger):
        self.cluster = cluster
        self.logger = logger
        self.conditions: List[Dict] = cluster.conditions
        self.written = False

    def has_condition(self, type_: str) -> bool:
        return find_condition(self.conditions, type_)[1] is not None

    def set_condition(self, type_: str, status: str, reason: str, message: str):
        self.conditions = upsert_condition(
            self.conditions,
            type_,
            status,
            reason,
            message,
            self.cluster.generation,
            refresh_unchanged=self.cluster.conf.condition_refresh_unchanged,
        )

    async def __aenter__(self) -> "StatusWriter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and issubclass(exc_type, asyncio.CancelledError):
            return False
        try:
            await self.cluster.write_status(self.conditions)
            self.written = True
        except Exception as ex:
            if classify(ex) is ErrorAction.RETRY_SILENTLY:
                self.logger.debug(f"Status write dropped on conflict: {ex.reason}")
            elif exc is not None:
                self.logger.error(f"Failed to write status: {ex}")
                return False
            else:
                raise
        sensor = get_sensor()
        if sensor:
            sensor.on_status_update(
                self.cluster.cluster, self.cluster.namespace, self.conditions, self.written
            )
        return False


async def reconcile(
    name: str, namespace: str, logger: Logger, conf: Settings = None
) -> ReconcileResult:
    """Bring the children of one EtcdCluster in line with its spec.

    Loads the object fresh, ensures config map, service and stateful set in that
    order and records progress in the Initialized condition.
    """
    logger.debug(f"Reconciling {CLUSTER_KIND}/{name} in {namespace} namespace.")
    body = await EtcdCluster.default(name, namespace, logger, conf).fetch()
    if body is None:
        logger.debug(f"{CLUSTER_KIND}/{name} not found in {namespace} namespace.")
        return ReconcileResult.NOT_FOUND
    if (body.get("metadata") or {}).get("deletionTimestamp"):
        logger.debug(f"{CLUSTER_KIND}/{name} is being deleted.")
        return ReconcileResult.DELETING

    spec: EtcdClusterSpec = EtcdClusterSpecSchema().load(body.get("spec") or {})
    cluster = EtcdCluster.from_body(body, spec, logger, conf)

    async with StatusWriter(cluster, logger) as status:
        if not status.has_condition(CONDITION_INITIALIZED):
            status.set_condition(
                CONDITION_INITIALIZED,
                STATUS_FALSE,
                REASON_INITIALIZATION_STARTED,
                MESSAGE_INITIALIZATION_STARTED,
            )
        try:
            await cluster.ensure_all()
        except ResourceOperationError as ex:
            raise ReconcileError(
                f"cannot create Cluster auxiliary objects: {ex}"
            ) from ex
        status.set_condition(
            CONDITION_INITIALIZED,
            STATUS_TRUE,
            REASON_INITIALIZATION_COMPLETE,
            MESSAGE_INITIALIZATION_COMPLETE,
        )
    logger.debug(f"Reconciled {CLUSTER_KIND}/{name} in {namespace} namespace.")
    return ReconcileResult.RECONCILED


async def run_reconcile(
    name: str,
    namespace: str,
    logger: Logger,
    trigger_source: str,
    conf: Settings = None,
) -> Optional[ReconcileResult]:
    """Run one serialized reconcile pass and translate its errors for Kopf."""
    conf = conf or getattr(EtcdCluster, "conf", None) or Settings()
    sensor = get_sensor()
    sensor_state = None
    if sensor:
        sensor_state = sensor.on_reconcile_start(name, namespace, trigger_source)

    success = False
    error = None
    try:
        async with reconciliation_locks[(namespace, name)]:
            result = await reconcile(name, namespace, logger, conf)
        success = True
        return result
    except ValidationError as ex:
        error = ex
        raise kopf.PermanentError(f"Invalid {CLUSTER_KIND} spec: {ex.messages}") from ex
    except ReconcileError as ex:
        error = ex
        raise kopf.TemporaryError(str(ex), delay=conf.retry_delay_seconds) from ex
    except ApiException as ex:
        error = ex
        raise convert_api_exception(ex, conf.retry_delay_seconds) from ex
    except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
        error = ex
        raise kopf.TemporaryError(
            f"Kubernetes API unreachable: {ex!r}", delay=conf.retry_delay_seconds
        ) from ex
    finally:
        if sensor:
            sensor.on_reconcile_complete(name, namespace, sensor_state, success, error)


@kopf.on.resume(group=CLUSTER_GROUP, kind=CLUSTER_KIND, timeout=RECONCILE_TIMEOUT_SECONDS)
async def on_resume(name, namespace, logger: Logger, **kwargs):
    """Reconcile EtcdClusters found on operator start."""
    await run_reconcile(name, namespace, logger, "resume")


@kopf.on.create(group=CLUSTER_GROUP, kind=CLUSTER_KIND, timeout=RECONCILE_TIMEOUT_SECONDS)
async def on_create(name, namespace, logger: Logger, **kwargs):
    await run_reconcile(name, namespace, logger, "create")


@kopf.on.update(
    group=CLUSTER_GROUP,
    kind=CLUSTER_KIND,
    field="spec",
    timeout=RECONCILE_TIMEOUT_SECONDS,
)
async def on_update(name, namespace, logger: Logger, **kwargs):
    await run_reconcile(name, namespace, logger, "update")


@kopf.timer(
    group=CLUSTER_GROUP,
    kind=CLUSTER_KIND,
    interval=RECONCILE_TIMER_INTERVAL_SECONDS,
    timeout=RECONCILE_TIMEOUT_SECONDS,
)
async def periodic_reconciliation(name, namespace, logger: Logger, **kwargs):
    """Reconcile EtcdClusters periodically to repair drift."""
    await run_reconcile(name, namespace, logger, "timer")


@kopf.on.delete(group=CLUSTER_GROUP, kind=CLUSTER_KIND, optional=True)
async def on_delete(name, namespace, **kwargs):
    """Forget per-cluster state. Children are garbage collected through owner references."""
    reconciliation_locks.pop((namespace, name), None)
