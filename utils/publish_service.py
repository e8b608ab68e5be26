"""
动态发布服务

将待发布内容组装为 GitHub Issue：
1. 校验内容长度（任何远程调用之前）
2. 媒体内容：下载文件 -> 上传到文件仓库 -> 在正文末尾追加 markdown 图片链接
3. 以当前时间戳为标题创建 Issue，标签为空时使用默认标签
4. 成功后写入已发布动态缓存
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional

from models.records import PendingSubmission, PublishedRecord
from models.state import SubmissionKind
from utils.github_client import GitHubClient, media_markdown
from utils.record_cache import PublishedRecordCache
from utils.telegram_io import MediaTooLargeError, Notifier, TelegramFileFetcher

logger = logging.getLogger(__name__)

# 媒体无文字时的默认正文
DEFAULT_MEDIA_CAPTION = {
    SubmissionKind.PHOTO: "📷 分享了一张图片",
    SubmissionKind.VIDEO: "🎥 分享了一个视频",
}

# 类型 -> (扩展名, MIME)
MEDIA_FILE_TYPES = {
    SubmissionKind.PHOTO: ("jpg", "image/jpeg"),
    SubmissionKind.VIDEO: ("mp4", "video/mp4"),
}


class ContentTooLongError(ValueError):
    """内容超过长度上限"""

    def __init__(self, limit: int):
        super().__init__(f"内容长度不能超过{limit}字符")
        self.limit = limit


def check_content_length(content: str, limit: int) -> None:
    if limit and len(content or '') > limit:
        raise ContentTooLongError(limit)


def media_file_name(kind: SubmissionKind, timestamp: int) -> str:
    extension, _ = MEDIA_FILE_TYPES[kind]
    return f"{kind.value}_{timestamp}.{extension}"


class PublishService:
    def __init__(
        self,
        *,
        github: GitHubClient,
        fetcher: TelegramFileFetcher,
        notifier: Notifier,
        records: PublishedRecordCache,
        max_content_length: int,
        max_file_size: int,
        default_label: str,
        clock=time.time,
    ):
        self.github = github
        self.fetcher = fetcher
        self.notifier = notifier
        self.records = records
        self.max_content_length = max_content_length
        self.max_file_size = max_file_size
        self.default_label = default_label
        self._clock = clock

    def resolve_content(self, submission: PendingSubmission, content_override: str = "") -> str:
        content = content_override or submission.caption
        if not content and submission.is_media:
            content = DEFAULT_MEDIA_CAPTION[submission.kind]
        return content

    async def publish(
        self,
        user_id: int,
        submission: PendingSubmission,
        content_override: str = "",
        labels: Optional[List[str]] = None,
    ) -> PublishedRecord:
        """
        发布一条待发布内容

        Args:
            user_id: 用户 ID（用于推送进度）
            submission: 已从会话中取出的待发布内容
            content_override: 非空时替代 submission.caption
            labels: 标签；为空时使用默认标签

        Returns:
            PublishedRecord: 已写入缓存的动态
        """
        content = self.resolve_content(submission, content_override)
        check_content_length(content, self.max_content_length)
        if (
            submission.kind == SubmissionKind.VIDEO
            and submission.file_size
            and submission.file_size > self.max_file_size
        ):
            raise MediaTooLargeError(f"视频文件过大，请上传小于 {self.max_file_size // (1024 * 1024)}MB 的视频")

        final_labels = list(labels or []) or [self.default_label]
        timestamp = int(self._clock())

        media_urls: List[str] = []
        if submission.is_media:
            data = await self.fetcher.fetch(submission.media_ref, self.max_file_size)
            file_name = media_file_name(submission.kind, timestamp)
            await self.notifier.notify(user_id, "📤 正在上传媒体文件...")
            url = await self.github.upload_file(
                file_name, data, f"Add media file: {file_name}", timestamp=timestamp
            )
            media_urls.append(url)

        body = content + media_markdown(media_urls)
        remote = await self.github.create_record(str(timestamp), body, final_labels)

        record = PublishedRecord.from_remote(remote, media_urls)
        record.content = body
        record.labels = final_labels
        self.records.put(record)
        logger.info(f"动态发布成功: user_id={user_id}, issue=#{record.number}, 类型={submission.kind.value}")
        return record
