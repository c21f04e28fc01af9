import os
import logging
from dotenv import load_dotenv, find_dotenv

logger = logging.getLogger(__name__)

env_file = os.environ.get("ENV_FILE", ".env")
path = find_dotenv(filename=env_file, usecwd=True)
if path:
    logger.info(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)

# Settings are read from the environment at import, so handlers come after .env
from etcd_operator.handlers import etcdcluster, probes  # noqa: E402

__all__ = [
    "etcdcluster",
    "probes",
]

__version__ = "0.1.0"
