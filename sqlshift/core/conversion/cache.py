"""Two-tier conversion cache.

Tier 1 (LocalCache) is a process-scoped string store: synchronous,
unbounded, gone when the process exits. Tier 2 (SharedCache) is the
``conversion_cache`` table reached through SQLAlchemy: durable, shared
between processes, and allowed to fail.

Both tiers store results by value. LocalCache keeps the JSON text and
decodes on every read, so callers can mutate what they get back without
touching the cached entry.

Usage:
    cache = TwoTierCache(LocalCache(), SharedCache(db_manager))
    hit = await cache.get(key, model_id)
    await cache.put(key, model_id, original_text, result)
"""

import asyncio
import json
import logging
import threading
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db import DatabaseManager
from ..db.models import ConversionCacheEntry
from .models import (
    CacheKey,
    ConversionIssue,
    ConversionResult,
    DataTypeMapping,
    PerformanceMetrics,
    SourceUnit,
)

logger = logging.getLogger(__name__)

LOCAL_KEY_PREFIX = "conversion-cache-"


class LocalCache:
    """Thread-safe in-process key-value cache of serialized results."""

    def __init__(self):
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(key: CacheKey) -> str:
        return f"{LOCAL_KEY_PREFIX}{key.digest}"

    def get(self, key: CacheKey) -> Optional[ConversionResult]:
        """Return a fresh copy of the cached result, or None."""
        with self._lock:
            raw = self._store.get(self._key(key))
        if raw is None:
            return None
        try:
            return ConversionResult.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable local cache entry {key.digest[:12]}: {e}")
            return None

    def put(self, key: CacheKey, result: ConversionResult) -> None:
        """Store ``result`` by value; last write wins."""
        raw = json.dumps(result.to_dict())
        with self._lock:
            self._store[self._key(key)] = raw

    def invalidate(self, key: Optional[CacheKey] = None) -> None:
        """Drop one entry, or everything when ``key`` is None."""
        with self._lock:
            if key is not None:
                self._store.pop(self._key(key), None)
            else:
                self._store.clear()

    def clear(self) -> None:
        self.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get_stats(self) -> Dict:
        with self._lock:
            return {
                "entries": len(self._store),
                "total_bytes": sum(len(v) for v in self._store.values()),
            }


class SharedCache:
    """Durable cache tier on the ``conversion_cache`` table.

    All failures (connection loss, constraint races, bad payloads) are
    logged and reported as a miss or a no-op write; the cache is never the
    source of truth.
    """

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    async def get(self, digest: str, model_id: str) -> Optional[ConversionResult]:
        try:
            return await asyncio.to_thread(self._get_sync, digest, model_id)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Shared cache lookup failed for {digest[:12]}: {e}")
            return None

    async def put(
        self,
        digest: str,
        model_id: str,
        original_text: str,
        result: ConversionResult,
    ) -> bool:
        """Insert or overwrite the row for (digest, model). Returns success."""
        try:
            await asyncio.to_thread(self._put_sync, digest, model_id, original_text, result)
            return True
        except IntegrityError as e:
            # Concurrent writer inserted the same key first; its value is equivalent
            logger.info(f"Shared cache write raced for {digest[:12]}, keeping existing row: {e.orig}")
            return False
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Shared cache write failed for {digest[:12]}: {e}")
            return False

    # ── Synchronous session work (runs in a worker thread) ─────────────

    def _get_sync(self, digest: str, model_id: str) -> Optional[ConversionResult]:
        with self._db.get_session() as session:
            row = (
                session.query(ConversionCacheEntry)
                .filter(
                    ConversionCacheEntry.content_hash == digest,
                    ConversionCacheEntry.ai_model == model_id,
                )
                .first()
            )
            if row is None:
                return None
            try:
                return self._row_to_result(row, model_id)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Malformed shared cache payload for {digest[:12]}, treating as miss: {e}")
                return None

    def _put_sync(
        self,
        digest: str,
        model_id: str,
        original_text: str,
        result: ConversionResult,
    ) -> None:
        with self._db.get_session() as session:
            row = (
                session.query(ConversionCacheEntry)
                .filter(
                    ConversionCacheEntry.content_hash == digest,
                    ConversionCacheEntry.ai_model == model_id,
                )
                .first()
            )
            if row is None:
                row = ConversionCacheEntry(content_hash=digest, ai_model=model_id)
                session.add(row)
            row.original_code = original_text
            row.converted_code = result.converted_text
            row.metrics = result.performance.to_dict()
            row.issues = [i.to_dict() for i in result.issues]
            row.data_type_mapping = [m.to_dict() for m in result.data_type_mappings]
            row.result_json = json.dumps(result.to_dict())

    @staticmethod
    def _row_to_result(row: ConversionCacheEntry, model_id: str) -> ConversionResult:
        """Decode a row; rows written without ``result_json`` use the columns."""
        if row.result_json:
            return ConversionResult.from_dict(json.loads(row.result_json))
        if not isinstance(row.converted_code, str):
            raise ValueError("converted_code missing")
        return ConversionResult(
            id=str(row.entry_id),
            source_unit=SourceUnit(identifier="", text=row.original_code or ""),
            converted_text=row.converted_code,
            issues=[ConversionIssue.from_dict(i) for i in (row.issues or [])],
            data_type_mappings=[DataTypeMapping.from_dict(m) for m in (row.data_type_mapping or [])],
            performance=PerformanceMetrics.from_dict(row.metrics or {}),
            model_id=model_id,
        )


class TwoTierCache:
    """Local-then-shared lookup, local-then-shared write.

    Args:
        local: Tier 1 store
        shared: Tier 2 store, or None for local-only deployments
        promote_shared_hits: Copy Tier 2 hits into Tier 1 (off by default so
            Tier 1 only holds what this session computed)
    """

    def __init__(
        self,
        local: Optional[LocalCache] = None,
        shared: Optional[SharedCache] = None,
        promote_shared_hits: bool = False,
    ):
        self.local = local if local is not None else LocalCache()
        self.shared = shared
        self.promote_shared_hits = promote_shared_hits

    async def get(self, key: CacheKey, model_id: str) -> Optional[ConversionResult]:
        cached = self.local.get(key)
        if cached is not None:
            logger.info(f"[LOCAL CACHE HIT] {key.digest[:12]}")
            return cached
        logger.info(f"[LOCAL CACHE MISS] {key.digest[:12]}")

        if self.shared is None:
            return None

        cached = await self.shared.get(key.digest, model_id)
        if cached is None:
            logger.info(f"[SHARED CACHE MISS] {key.digest[:12]}")
            return None

        logger.info(f"[SHARED CACHE HIT] {key.digest[:12]}")
        if self.promote_shared_hits:
            self.local.put(key, cached)
        return cached

    async def put(
        self,
        key: CacheKey,
        model_id: str,
        original_text: str,
        result: ConversionResult,
    ) -> None:
        self.local.put(key, result)
        if self.shared is not None:
            await self.shared.put(key.digest, model_id, original_text, result)
