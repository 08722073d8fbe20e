import os
import logging
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

logger = logging.getLogger(__name__)

# Driver-level logs are noisy at INFO
logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'formation')

_client_cache: MongoClient | None = None
_connection_attempted = False
_connection_failed = False


def reset_client() -> None:
    """Forget the cached client and any earlier failure (tests, reconfiguration)."""
    global _client_cache, _connection_attempted, _connection_failed
    _client_cache = None
    _connection_attempted = False
    _connection_failed = False


def get_mongodb_client() -> MongoClient | None:
    """Get a MongoDB client, reusing a healthy cached one.

    1. Return the cached client if it still answers ping
    2. Otherwise reconnect
    3. If the very first connection failed (configuration problem), give up

    Returns:
        MongoDB client or None if no connection could be made
    """
    global _client_cache, _connection_attempted, _connection_failed

    if _client_cache:
        try:
            _client_cache.admin.command('ping')
            return _client_cache
        except Exception:
            _client_cache = None
            logger.debug("[MONGODB] Cached client failed ping, reconnecting")

    if _connection_failed:
        return None

    if not MONGO_URL:
        logger.error("[MONGODB] MONGO_URL not configured")
        _connection_failed = True
        return None

    try:
        client = MongoClient(
            MONGO_URL,
            tz_aware=True,  # expiry comparisons need aware datetimes
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            maxPoolSize=10,
            minPoolSize=0,
            maxIdleTimeMS=30000,
            retryWrites=True,
            retryReads=True,
        )
        client.admin.command('ping')

        is_first_connection = not _connection_attempted
        _connection_attempted = True
        _client_cache = client

        if is_first_connection:
            logger.info(f"[MONGODB] Connected to {DATABASE_NAME}")
        return client
    except (ConnectionFailure, PyMongoError) as e:
        if not _connection_attempted:
            logger.error(f"[MONGODB] Initial connection failed: {str(e)[:200]}")
            _connection_failed = True
        return None
