"""
标签解析器

返回当前可用的标签列表：
- 缓存未过期且非空时直接返回缓存
- 否则从远程刷新；刷新失败时回退到旧缓存，从未缓存过则回退到默认标签
- force_refresh() 跳过新鲜度检查，失败时把异常抛给调用方
"""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from config.settings import DEFAULT_LABELS, LABEL_CACHE_TTL
from utils.rw_lock import RWLock

logger = logging.getLogger(__name__)

LabelFetcher = Callable[[], Awaitable[List[str]]]


class LabelResolver:
    def __init__(
        self,
        fetch_labels: LabelFetcher,
        *,
        ttl_seconds: float = LABEL_CACHE_TTL,
        defaults: Iterable[str] = DEFAULT_LABELS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch_labels = fetch_labels
        self.ttl_seconds = float(ttl_seconds)
        self.defaults: Tuple[str, ...] = tuple(defaults)
        self._clock = clock
        self._lock = RWLock()
        self._labels: Tuple[str, ...] = ()
        self._fetched_at: Optional[float] = None

    def cached(self) -> Tuple[Tuple[str, ...], Optional[float]]:
        """返回 (缓存标签, 获取时间)"""
        with self._lock.read():
            return self._labels, self._fetched_at

    def _is_fresh(self, labels: Tuple[str, ...], fetched_at: Optional[float]) -> bool:
        if not labels or fetched_at is None:
            return False
        return (self._clock() - fetched_at) < self.ttl_seconds

    def _fallback(self) -> List[str]:
        labels, _ = self.cached()
        return list(labels) if labels else list(self.defaults)

    async def _refresh(self) -> List[str]:
        fetched = await self._fetch_labels()
        labels = _dedupe(fetched)
        if not labels:
            labels = self.defaults
        with self._lock.write():
            self._labels = labels
            self._fetched_at = self._clock()
        logger.info(f"标签缓存已刷新，共 {len(labels)} 个")
        return list(labels)

    async def current_labels(self) -> List[str]:
        labels, fetched_at = self.cached()
        if self._is_fresh(labels, fetched_at):
            return list(labels)
        try:
            return await self._refresh()
        except Exception as e:
            logger.warning(f"获取远程标签失败: {e}，使用缓存/默认标签")
            return self._fallback()

    async def force_refresh(self) -> List[str]:
        """强制刷新；失败时缓存保持不变并抛出异常"""
        try:
            return await self._refresh()
        except Exception as e:
            logger.error(f"刷新标签失败: {e}")
            raise


def _dedupe(labels: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for label in labels or []:
        name = str(label).strip()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)
