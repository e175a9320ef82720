from __future__ import annotations

import asyncio
from collections import OrderedDict
import logging

from ..config import ParserConfig, ServiceSettings
from ..core.decoding import decode_kif_bytes
from ..core.import_kif import ParsedKifu, detect_kif, import_kif_text


_LOGGER = logging.getLogger(__name__)


class KifuStore:
    """Parsed kifu kept in memory, oldest evicted past ``max_stored``."""

    def __init__(self, max_stored: int = 64):
        self.max_stored = max(1, int(max_stored))
        self._items: "OrderedDict[str, ParsedKifu]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def put(self, kifu: ParsedKifu) -> None:
        self._items[kifu.kifu_id] = kifu
        self._items.move_to_end(kifu.kifu_id)
        while len(self._items) > self.max_stored:
            evicted_id, _ = self._items.popitem(last=False)
            _LOGGER.debug("evicted kifu %s", evicted_id)

    def get(self, kifu_id: str) -> ParsedKifu | None:
        return self._items.get(kifu_id)

    def delete(self, kifu_id: str) -> bool:
        return self._items.pop(kifu_id, None) is not None

    def list_kifu(self, limit: int = 50, offset: int = 0) -> list[dict]:
        limit = max(1, min(200, int(limit)))
        offset = max(0, int(offset))
        newest_first = list(reversed(self._items.values()))
        return [k.summary() for k in newest_first[offset : offset + limit]]


class RuntimeState:
    def __init__(self, store: KifuStore, settings: ServiceSettings, config: ParserConfig):
        self.store = store
        self.settings = settings
        self.config = config
        self._lock = asyncio.Lock()

    async def import_text(self, text: str, title: str | None = None) -> ParsedKifu:
        if not detect_kif(text, self.config):
            raise ValueError("input is not a KIF game record")
        kifu = import_kif_text(text, config=self.config, title=title)
        async with self._lock:
            self.store.put(kifu)
        return kifu

    async def import_bytes(self, data: bytes, encoding: str | None = None, title: str | None = None) -> ParsedKifu:
        text = decode_kif_bytes(data, encoding, fallback=self.settings.default_encoding)
        return await self.import_text(text, title=title)

    async def get(self, kifu_id: str) -> ParsedKifu:
        async with self._lock:
            kifu = self.store.get(kifu_id)
        if kifu is None:
            raise KeyError(f"kifu not found: {kifu_id}")
        return kifu

    async def delete(self, kifu_id: str) -> bool:
        async with self._lock:
            return self.store.delete(kifu_id)

    async def list_kifu(self, limit: int = 50, offset: int = 0) -> list[dict]:
        async with self._lock:
            return self.store.list_kifu(limit=limit, offset=offset)

    async def count(self) -> int:
        async with self._lock:
            return len(self.store)
