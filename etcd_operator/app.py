import kopf
import logging
import etcd_operator.handlers.etcdcluster as etcdcluster
from etcd_operator.types.settings import Settings
from etcd_operator.resources.base import BaseResource
from etcd_operator.resources.etcdcluster import EtcdCluster
from etcd_operator.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    EtcdCluster.conf = memo.conf

    # One ApiClient for every resource, closed on cleanup
    BaseResource.shared_api_client = ApiClient()
    logger.info("Shared Kubernetes API client initialized")

    sensor_delegate = SensorDelegate()
    memo.sensor = sensor_delegate
    BaseResource.sensor = sensor_delegate

    if memo.conf.metrics_enabled:
        sensor_delegate.add(PrometheusMonitor())
        logger.info("Sensor infrastructure initialized with PrometheusMonitor")
        try:
            init_metrics_server()
        except Exception as e:
            # Don't fail operator startup if metrics server fails
            logger.error(f"Failed to start metrics server: {e}")
            logger.warning("Continuing without metrics server")

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = memo.conf.worker_limit

    # Post events to the Kubernetes API for logging >= Warning
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    if BaseResource.shared_api_client is not None:
        await BaseResource.shared_api_client.close()
        BaseResource.shared_api_client = None
        logger.info("Shared API client closed")

    etcdcluster.reconciliation_locks.clear()
    logger.info("Operator shutdown complete")


__all__ = ["etcdcluster"]
