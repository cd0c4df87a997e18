from celery import Celery
from ssl import CERT_NONE
from dotenv import load_dotenv
import logging

from catalog.config import settings

load_dotenv()

logger = logging.getLogger(__name__)


def to_tls_url(url: str) -> str:
    """
    Upstash Redis requires TLS: convert redis:// to rediss:// and drop any
    trailing slash or database number.
    """
    if url and "upstash.io" in url:
        url = url.rstrip('/')
        if url[-2:] in ('/0', '/1', '/2'):
            url = url[:-2]
        if url.startswith("redis://"):
            url = url.replace("redis://", "rediss://", 1)
    return url


celery_broker_url = to_tls_url(settings.celery_broker_url)
celery_result_backend = to_tls_url(settings.celery_result_backend)

celery_app = Celery(
    "catalog",
    broker=celery_broker_url,
    backend=celery_result_backend,
)

config_updates = {
    'broker_url': celery_broker_url,
    'result_backend': celery_result_backend,
    'task_serializer': "json",
    'accept_content': ["json"],
    'result_serializer': "json",
    'timezone': "UTC",
    'enable_utc': True,
    'task_track_started': True,
    'task_time_limit': 3600,  # 1 hour max for a full-catalog pass
    'worker_prefetch_multiplier': 1,
    'broker_connection_retry_on_startup': True,
    'result_backend_always_retry': True,
    'result_backend_max_retries': 3,
}

# Upstash uses self-signed certs; Kombu takes SSL options via broker_use_ssl
if "upstash.io" in celery_broker_url or "upstash.io" in celery_result_backend:
    config_updates['broker_use_ssl'] = {
        'ssl_cert_reqs': CERT_NONE,
        'ssl_ca_certs': None,
        'ssl_certfile': None,
        'ssl_keyfile': None,
    }
    config_updates['broker_transport_options'] = {'health_check_interval': 30}
    logger.info(f"[Celery] Broker URL converted to: {celery_broker_url[:50]}...")

celery_app.conf.update(**config_updates)

# Import tasks to register them
from catalog.tasks import maintenance  # noqa
