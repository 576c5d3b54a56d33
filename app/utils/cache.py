import redis


def redis_client(url: str | None):
    """Redis client for `url`, or None when caching is not configured."""
    if not url:
        return None
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=1.0,
        socket_connect_timeout=1.0,
    )


def totals_cache_key(beneficiary_id: str | None) -> str:
    # Whole-ledger and per-beneficiary totals live in separate namespaces so
    # no beneficiary id can alias the ledger-wide entry.
    if beneficiary_id is None:
        return "ledger:totals:all:v1"
    return f"ledger:totals:beneficiary:{beneficiary_id}:v1"


def generation_key(cache_key: str) -> str:
    """Counter bumped on every invalidation of `cache_key`."""
    return f"{cache_key}:gen"
