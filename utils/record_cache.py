"""
已发布动态缓存（Issue 编号 -> PublishedRecord）

默认不限容量；max_entries > 0 时超出部分按最早写入淘汰。
"""
from __future__ import annotations

import copy
import logging
from collections import OrderedDict
from typing import List, Optional

from models.records import PublishedRecord
from utils.rw_lock import RWLock

logger = logging.getLogger(__name__)


class PublishedRecordCache:
    def __init__(self, max_entries: int = 0):
        self.max_entries = max(0, int(max_entries or 0))
        self._lock = RWLock()
        self._records: "OrderedDict[int, PublishedRecord]" = OrderedDict()

    def get(self, number: int) -> Optional[PublishedRecord]:
        with self._lock.read():
            return copy.deepcopy(self._records.get(number))

    def put(self, record: PublishedRecord) -> None:
        with self._lock.write():
            self._records.pop(record.number, None)
            self._records[record.number] = copy.deepcopy(record)
            while self.max_entries and len(self._records) > self.max_entries:
                evicted, _ = self._records.popitem(last=False)
                logger.debug(f"动态缓存超出容量，淘汰 #{evicted}")

    def remove(self, number: int) -> bool:
        with self._lock.write():
            return self._records.pop(number, None) is not None

    def numbers(self) -> List[int]:
        with self._lock.read():
            return list(self._records.keys())

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)

    def __contains__(self, number: int) -> bool:
        with self._lock.read():
            return number in self._records
