"""etcd member HTTP client, used to probe cluster health."""
import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Union
import aiohttp
from yarl import URL
from etcd_operator.types.settings import HEALTH_CHECK_TIMEOUT_SECONDS
from .session import SessionManager
from .error import EtcdClientError

logger = logging.getLogger(__name__)

# etcd gRPC gateway path of Maintenance.Status
STATUS_URL = "/v3/maintenance/status"


class EtcdClient(SessionManager):
    """Client for the etcd v3 JSON gateway."""

    def __init__(self, timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS, **kwargs: Any) -> None:
        super().__init__(timeout=timeout, **kwargs)

    async def get_status(self, endpoint: Union[str, URL]) -> Dict:
        """Get the maintenance status of one member."""
        url = URL(str(endpoint)).with_path(STATUS_URL)
        return await self.post(url, data={})


async def is_cluster_healthy(
    endpoints: Iterable[Union[str, URL]],
    timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS,
    client: Optional[EtcdClient] = None,
) -> bool:
    """True only if there is at least one endpoint and every one reports no errors.

    A member that cannot be reached, or answers with an error status, makes the
    cluster unhealthy.

    Endpoints are checked one after another over a single HTTP session. Unless
    ``client`` is passed, that session is opened for this call and closed before
    returning; a passed client is left open for the caller.
    """
    endpoints = list(endpoints)
    if not endpoints:
        return False

    owned = client is None
    client = client or EtcdClient(timeout=timeout)
    try:
        for endpoint in endpoints:
            try:
                status = await client.get_status(endpoint)
            except (
                aiohttp.ClientError,
                asyncio.TimeoutError,
                EtcdClientError,
                ValueError,
            ) as e:
                logger.warning(f"etcd member {endpoint} is unreachable: {e}")
                return False
            errors = (status or {}).get("errors") or []
            if errors:
                logger.warning(f"etcd member {endpoint} reports errors: {errors}")
                return False
        return True
    finally:
        if owned:
            await client.close()
