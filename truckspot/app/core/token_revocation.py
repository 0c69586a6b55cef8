"""
Token revocation checks backed by Redis.

Tokens are blacklisted by the account service; this service only reads
the flags so blocked owners and customers lose access immediately.
"""

import logging

from redis.exceptions import RedisError

from truckspot.app.core import redis_client as redis_module

logger = logging.getLogger("truckspot.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Args:
        token: JWT token string to check

    Returns:
        True if token is revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis_module.redis_client.exists(key)
        return exists > 0
    except (RedisError, OSError) as e:
        # Fail open: a Redis outage must not take location ingest down with it
        logger.error("Error checking token revocation: %s", e)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """
    Check if all tokens for a user have been revoked.

    Args:
        user_id: User ID to check

    Returns:
        True if all user tokens are revoked, False otherwise
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        exists = await redis_module.redis_client.exists(key)
        return exists > 0
    except (RedisError, OSError) as e:
        logger.error("Error checking user token revocation for %s: %s", user_id, e)
        return False
