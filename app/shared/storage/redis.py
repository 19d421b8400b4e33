"""
Redis client manager that creates and tracks labelled async clients.
"""

import threading
from typing import Dict

from loguru import logger
from redis.asyncio import Redis

from ..config import config
from .mongo import hide_password


class RedisManager:
    """
    Labelled Redis client manager.

    Connection strings come from REDIS_URL_<LABEL> entries in the config, with
    `default` resolved by `config.get_redis_url()`.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._clients: Dict[str, Redis] = {}
        self._connection_strings: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._load_connection_strings()

        self._initialized = True

    def _load_connection_strings(self):
        for key, value in config.items():
            if not key.startswith("REDIS_URL_") or not value:
                continue
            label = key[len("REDIS_URL_"):].lower()
            self._connection_strings[label] = value
            logger.info("Loaded Redis connection string for label '{}': {}", label, hide_password(value))

        if "default" not in self._connection_strings:
            default_url = config.get_redis_url("default")
            self._connection_strings["default"] = default_url
            logger.info("Using default Redis connection string: {}", hide_password(default_url))

    def get_cache_client(self, label: str | None = None) -> Redis:
        label = label or "default"

        with self._lock:
            if label not in self._clients:
                connection_string = self._connection_strings.get(label)
                if not connection_string:
                    raise ValueError(f"No Redis connection string found for label '{label}'")

                logger.info("Open Redis client for label '{}'", label)
                self._clients[label] = Redis.from_url(
                    connection_string,
                    socket_connect_timeout=2,
                    socket_timeout=5,
                )

            return self._clients[label]

    async def close_all(self):
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        for label, client in clients:
            try:
                await client.aclose()
                logger.info("Closed Redis client for label '{}'", label)
            except Exception as e:
                logger.error("Error closing Redis client for label '{}': {}", label, e)


def get_redis_manager() -> RedisManager:
    """Get global RedisManager instance."""
    return RedisManager()


def get_redis_client(label: str | None = None) -> Redis:
    return get_redis_manager().get_cache_client(label)
