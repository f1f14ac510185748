"""
Redis-based record store implementation.

Each session record is a Redis hash at "{table_name}:{id}" with an
"expires" field (epoch milliseconds) and a "content" field (JSON). The
keyspace itself is represented by a metadata hash at "{table_name}",
which init() requires to exist unless auto_create is set.

Scans use SCAN with a MATCH pattern, so each page inspects roughly
page_size keys and reads their expiry in a single pipeline. SCAN may
return a key more than once across pages; deletes are idempotent, so a
sweep tolerates that.
"""

import logging
import time
from typing import Any, Optional

from sessionkeeper.config.settings import ConfigurationError
from sessionkeeper.errors.exceptions import session_store_unavailable
from sessionkeeper.records.base import (
    RecordStore,
    ScanPage,
    StoredRecord,
    decode_content,
    encode_content,
    parse_expires,
)

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(value: str) -> str:
    """Escape the characters SCAN MATCH treats as glob syntax."""
    return "".join("\\" + ch if ch in _GLOB_SPECIAL else ch for ch in value)


class RedisRecordStore(RecordStore):
    """
    Redis-backed record store implementation.

    Attributes:
        redis_url: Redis connection URL (e.g., "redis://localhost:6379")
        table_name: Keyspace name, used as the key prefix
        page_size: COUNT hint passed to SCAN
        client: Redis async client instance (initialized via connect())
    """

    def __init__(
        self,
        table_name: str,
        redis_url: Optional[str] = None,
        page_size: int = 100,
        client: Optional[Any] = None
    ):
        """
        Initialize the Redis record store.

        Args:
            table_name: Keyspace name.
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0").
                Not needed when a client is supplied.
            page_size: Number of keys SCAN inspects per page.
            client: Optional pre-built redis.asyncio client.
        """
        self.table_name = table_name
        self.redis_url = redis_url
        self.page_size = page_size
        self.client = client

    async def connect(self) -> None:
        """
        Create the async Redis client from the configured URL.

        Raises:
            ConfigurationError: If no URL is configured.
        """
        if self.client is not None:
            return
        if not self.redis_url:
            raise ConfigurationError(
                f"No Redis URL configured for session table {self.table_name}",
                missing_fields=["redis_url"]
            )
        import redis.asyncio as redis
        self.client = redis.from_url(self.redis_url, decode_responses=True)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    def _require_client(self) -> Any:
        if self.client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self.client

    @property
    def key_prefix(self) -> str:
        return f"{self.table_name}:"

    def _get_key(self, record_id: str) -> str:
        return f"{self.key_prefix}{record_id}"

    def _get_id(self, key: Any) -> str:
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        return key[len(self.key_prefix):]

    async def init(self, auto_create: bool = False) -> None:
        """
        Ping Redis and check for the table metadata key.

        Raises:
            AppException: SESSION_STORE_UNAVAILABLE if the table is missing
                and auto_create is False.
        """
        await self.connect()
        client = self._require_client()

        await client.ping()
        if await client.exists(self.table_name):
            return

        if not auto_create:
            raise session_store_unavailable(
                f"Table {self.table_name} does not exist",
                details={"table_name": self.table_name}
            )

        await client.hset(self.table_name, mapping={
            "created": str(int(time.time() * 1000)),
        })
        logger.info(f"Created session table {self.table_name}", extra={
            "extra_data": {"table_name": self.table_name}
        })

    async def get(self, record_id: str) -> Optional[StoredRecord]:
        client = self._require_client()

        raw_expires, raw_content = await client.hmget(
            self._get_key(record_id), ["expires", "content"]
        )

        expires = parse_expires(raw_expires)
        if expires is None or raw_content is None:
            return None

        return StoredRecord(expires=expires, content=decode_content(raw_content, record_id))

    async def put(self, record_id: str, expires: int, content: Any) -> None:
        client = self._require_client()

        await client.hset(self._get_key(record_id), mapping={
            "expires": str(int(expires)),
            "content": encode_content(content, record_id),
        })

    async def set_expires(self, record_id: str, expires: int) -> None:
        client = self._require_client()
        await client.hset(self._get_key(record_id), "expires", str(int(expires)))

    async def delete(self, record_id: str) -> None:
        client = self._require_client()
        await client.delete(self._get_key(record_id))

    async def scan_page(self, cutoff: int, cursor: Optional[Any] = None) -> ScanPage:
        client = self._require_client()

        next_cursor, keys = await client.scan(
            cursor=cursor or 0,
            match=f"{_escape_glob(self.key_prefix)}*",
            count=self.page_size
        )

        items = []
        if keys:
            pipe = client.pipeline(transaction=False)
            for key in keys:
                pipe.hget(key, "expires")
            values = await pipe.execute()

            for key, raw_expires in zip(keys, values):
                expires = parse_expires(raw_expires)
                if expires is not None and expires < cutoff:
                    items.append(self._get_id(key))

        return ScanPage(
            items=items,
            scanned_count=len(keys),
            next_cursor=int(next_cursor) or None
        )

    async def health_check(self) -> bool:
        """
        Check connectivity of the Redis store.

        Note:
            This method does not raise; connectivity issues result in False.
        """
        if self.client is None:
            return False

        try:
            result = await self.client.ping()
            return result is True
        except Exception:
            return False
