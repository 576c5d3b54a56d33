import json
import logging
from typing import Any, Dict, List, Optional

import redis

from app.models.donation import DonationRecord
from app.utils.cache import generation_key, totals_cache_key

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


def list_donations(
    store,
    *,
    beneficiary_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[DonationRecord]:
    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    offset = max(0, int(offset))
    return store.list(beneficiary_id=beneficiary_id, limit=limit, offset=offset)


def get_donation(store, donation_id: str) -> Optional[DonationRecord]:
    return store.get(donation_id)


def _load_totals(store, beneficiary_id: Optional[str]) -> Dict[str, Any]:
    totals = store.totals(beneficiary_id=beneficiary_id)
    return {
        "beneficiary_id": beneficiary_id,
        "count": totals["count"],
        "beneficiary_amount_cents": totals["beneficiary_amount_cents"],
        "platform_amount_cents": totals["platform_amount_cents"],
        "beneficiary_amount": round(totals["beneficiary_amount_cents"] / 100.0, 2),
        "platform_amount": round(totals["platform_amount_cents"] / 100.0, 2),
    }


def beneficiary_totals(
    store, beneficiary_id: Optional[str] = None, *, cache=None, ttl: int = 60
) -> Dict[str, Any]:
    """
    Totals for one beneficiary (or the whole ledger when beneficiary_id is
    None). Served from Redis when available; a cache outage only costs a
    database query.

    The store is read while the entry's generation counter is WATCHed, so an
    invalidation that lands in between aborts the cache write instead of
    pinning stale totals for the whole TTL.
    """
    if cache is None:
        return _load_totals(store, beneficiary_id)

    key = totals_cache_key(beneficiary_id)
    try:
        cached = cache.get(key)
        if cached:
            return json.loads(cached)
    except redis.RedisError as e:
        logger.warning("totals cache read failed: %s", e)
        return _load_totals(store, beneficiary_id)

    out = None
    try:
        with cache.pipeline() as pipe:
            pipe.watch(generation_key(key))
            out = _load_totals(store, beneficiary_id)
            pipe.multi()
            pipe.setex(key, ttl, json.dumps(out))
            pipe.execute()
    except redis.WatchError:
        logger.info("totals for %s changed while loading, not cached", key)
    except redis.RedisError as e:
        logger.warning("totals cache write failed: %s", e)

    if out is None:
        out = _load_totals(store, beneficiary_id)
    return out


def invalidate_totals(cache, beneficiary_id: Optional[str]) -> None:
    if cache is None:
        return
    keys = [totals_cache_key(None)]
    if beneficiary_id is not None:
        keys.append(totals_cache_key(beneficiary_id))
    try:
        pipe = cache.pipeline()
        for key in keys:
            pipe.incr(generation_key(key))
        pipe.delete(*keys)
        pipe.execute()
    except redis.RedisError as e:
        logger.warning("totals cache invalidation failed: %s", e)
