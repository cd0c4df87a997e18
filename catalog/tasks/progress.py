import json
import redis
from datetime import datetime
from typing import Optional

from catalog.config import settings
from catalog.tasks.celery_app import to_tls_url

PROGRESS_TTL_SECONDS = 3600

redis_url = to_tls_url(settings.redis_url)
if redis_url.startswith("rediss://"):
    redis_client = redis.from_url(redis_url, decode_responses=True, ssl_cert_reqs=None)
else:
    redis_client = redis.from_url(redis_url, decode_responses=True)


def progress_key(task_id: str) -> str:
    return f"task_progress:{task_id}"


def read_progress(task_id: str) -> Optional[dict]:
    existing = redis_client.get(progress_key(task_id))
    return json.loads(existing) if existing else None


def update_progress(task_id: str, **kwargs) -> dict:
    """Update task progress in Redis."""
    progress = read_progress(task_id) or {
        "task_id": task_id,
        "status": "pending",
        "progress": 0.0,
        "result": {},
        "errors": [],
        "created_at": datetime.utcnow().isoformat(),
    }

    progress.update(kwargs)

    redis_client.setex(progress_key(task_id), PROGRESS_TTL_SECONDS, json.dumps(progress))
    return progress
