from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Any

import requests

from config import get_settings
from feed_cache import FeedCache

logger = logging.getLogger("uvicorn.error")

TOO_COMPLEX_MARKER = "Query is too complex"

feed_cache = FeedCache(max_entries=get_settings().feed_cache_max_entries)


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float


def build_viewport_url(bounds: BoundingBox, limit: int) -> str:
    settings = get_settings()
    return (
        f"https://{settings.dataset_domain}/resource/{settings.dataset_id}.geojson"
        f"?$where=within_box({settings.geometry_field}, {bounds.north}, {bounds.west}, "
        f"{bounds.south}, {bounds.east})"
        f"&$limit={limit}"
    )


def _extract_features(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict) and isinstance(payload.get("features"), list):
        return [f for f in payload["features"] if isinstance(f, dict)]
    if isinstance(payload, list):
        # Plain .json endpoints return bare rows; wrap them as features.
        return [{"type": "Feature", "properties": row, "geometry": None} for row in payload if isinstance(row, dict)]
    return []


def fetch_regulation_features(bounds: BoundingBox, limit: int | None = None) -> tuple[list[dict[str, Any]], dict]:
    """Fetch regulation features inside a viewport.

    Never raises for upstream trouble; the freshness status reports
    "cache", "live", "too_complex" or "unavailable".
    """
    settings = get_settings()
    url = build_viewport_url(bounds, limit or settings.default_feature_limit)

    cached, fetched_at = feed_cache.lookup(url)
    if cached is not None:
        logger.debug("Regulation feed cache hit: %s", url)
        return cached, {"status": "cache", "cache_hit": True, "fetched_at": fetched_at}

    headers = {"X-App-Token": settings.app_token} if settings.app_token else {}
    try:
        response = requests.get(url, headers=headers, timeout=settings.request_timeout_seconds)
        if response.status_code == 400 and TOO_COMPLEX_MARKER in response.text:
            logger.warning("Regulation feed rejected viewport as too complex: %s", url)
            return [], {"status": "too_complex", "cache_hit": False, "fetched_at": datetime.now(UTC)}
        response.raise_for_status()
        features = _extract_features(response.json())
    except (requests.RequestException, ValueError) as e:
        logger.warning("Regulation feed unavailable (%s): %s", url, e)
        return [], {"status": "unavailable", "cache_hit": None, "fetched_at": datetime.now(UTC)}

    feed_cache.store(url, features, ttl_seconds=settings.feed_cache_ttl_seconds)
    logger.info("Regulation feed returned %d features", len(features))
    return features, {"status": "live", "cache_hit": False, "fetched_at": datetime.now(UTC)}
