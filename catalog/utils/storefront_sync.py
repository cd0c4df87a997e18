import httpx
import logging
from typing import Any, Dict, Optional

from catalog.config import settings

logger = logging.getLogger(__name__)

SYNC_SECRET_HEADER = "x-sync-secret"


def notify_storefront(product_id: Optional[int], slug: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Tell the storefront that a product changed so it can refresh its copy.

    Failures are logged and never raised; the write has already been committed.
    Returns the storefront's JSON reply, or None when nothing was synced.
    """
    if not product_id and not slug:
        logger.warning("[storefront-sync] Product entry has no id/slug; skipping sync")
        return None

    if not settings.storefront_sync_secret:
        logger.error("[storefront-sync] STOREFRONT_SYNC_SECRET is not set; skipping sync")
        return None

    payload = {"entry": {"id": product_id, "slug": slug}}
    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.post(
                settings.storefront_sync_url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    SYNC_SECRET_HEADER: settings.storefront_sync_secret,
                },
            )
    except httpx.HTTPError as e:
        logger.error(f"[storefront-sync] Error calling storefront sync endpoint: {e}")
        return None

    if not response.is_success:
        logger.warning(
            f"[storefront-sync] Sync failed {response.status_code} {response.reason_phrase}: {response.text}"
        )
        return None

    try:
        body = response.json() if response.content else {}
    except ValueError:
        body = {"raw": response.text}

    logger.info(f"[storefront-sync] Synced product id={product_id}, slug=\"{slug}\": {body}")
    return body
