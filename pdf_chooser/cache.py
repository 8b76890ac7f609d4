"""Time-boxed cache of normalized files, one slot per credential fingerprint."""

import json
import logging
import time
from typing import Callable

from pydantic import ValidationError

from pdf_chooser.exceptions import CacheCorruptionError
from pdf_chooser.models import CacheEntry, NormalizedFile
from pdf_chooser.store import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "hubspot-pdfs-"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(token: str) -> str:
    return f"{CACHE_KEY_PREFIX}{token[:8]}"


class ResultCache:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.ttl_ms = ttl_seconds * 1000
        self.clock = clock

    def _parse(self, raw: str) -> CacheEntry:
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            raise CacheCorruptionError(str(exc)) from exc

    def load(self, token: str) -> list[NormalizedFile] | None:
        key = cache_key(token)
        raw = self.store.get(key)
        if raw is None:
            return None

        try:
            entry = self._parse(raw)
        except CacheCorruptionError as exc:
            logger.warning("Cache parse error, evicting %s: %s", key, exc)
            self.store.delete(key)
            return None

        age_ms = self.clock() - entry.timestamp
        if age_ms >= self.ttl_ms:
            logger.info("Cache expired for %s, evicting", key)
            self.store.delete(key)
            return None

        logger.info(
            "Loaded %d PDFs from cache (age: %d hours)",
            len(entry.data),
            round(age_ms / (60 * 60 * 1000)),
        )
        return list(entry.data)

    def save(self, token: str, files: list[NormalizedFile]) -> CacheEntry:
        entry = CacheEntry(data=files, timestamp=self.clock())
        self.store.set(cache_key(token), entry.model_dump_json(by_alias=True))
        return entry

    def evict(self, token: str) -> None:
        self.store.delete(cache_key(token))
