"""
数据模型：待发布内容、编辑状态、已发布动态、远程 Issue
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.state import SubmissionKind


@dataclass
class PendingSubmission:
    """待发布内容（每个用户最多一条）"""
    kind: SubmissionKind
    media_ref: str = ""
    caption: str = ""
    labels: List[str] = field(default_factory=list)
    file_size: Optional[int] = None

    @property
    def is_media(self) -> bool:
        return self.kind in (SubmissionKind.PHOTO, SubmissionKind.VIDEO)


@dataclass
class PendingEdit:
    """编辑状态（每个用户最多一条，不会自动过期）"""
    record_number: int
    original_content: str
    original_labels: List[str] = field(default_factory=list)
    selected_labels: List[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)

    @classmethod
    def start(cls, record: "PublishedRecord") -> "PendingEdit":
        # 默认沿用原标签
        return cls(
            record_number=record.number,
            original_content=record.content,
            original_labels=list(record.labels),
            selected_labels=list(record.labels),
        )


@dataclass
class RemoteRecord:
    """GitHub Issue 的本地表示"""
    id: int
    number: int
    title: str = ""
    body: str = ""
    html_url: str = ""
    state: str = "open"
    labels: List[str] = field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteRecord":
        labels = []
        for item in data.get('labels') or []:
            # GitHub 返回的标签可能是对象，也可能是字符串
            if isinstance(item, dict):
                name = item.get('name')
            else:
                name = item
            if name:
                labels.append(str(name))
        return cls(
            id=int(data.get('id') or 0),
            number=int(data.get('number') or 0),
            title=str(data.get('title') or ''),
            body=str(data.get('body') or ''),
            html_url=str(data.get('html_url') or ''),
            state=str(data.get('state') or 'open'),
            labels=labels,
            created_at=str(data.get('created_at') or ''),
        )


@dataclass
class PublishedRecord:
    """已发布动态的本地缓存条目"""
    number: int
    issue_id: int = 0
    content: str = ""
    labels: List[str] = field(default_factory=list)
    media_urls: List[str] = field(default_factory=list)
    html_url: str = ""
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @classmethod
    def from_remote(cls, remote: RemoteRecord, media_urls: Optional[List[str]] = None) -> "PublishedRecord":
        now = time.time()
        return cls(
            number=remote.number,
            issue_id=remote.id,
            content=remote.body,
            labels=list(remote.labels),
            media_urls=list(media_urls or []),
            html_url=remote.html_url,
            created_at=now,
            updated_at=now,
        )


@dataclass
class Reply:
    """处理结果：回复给用户的文字及可选的内联键盘"""
    text: str
    keyboard: Any = None
