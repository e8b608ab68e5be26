"""
发布服务测试
"""
import pytest

from models.records import PendingSubmission
from models.state import SubmissionKind
from utils.publish_service import ContentTooLongError, PublishService, media_file_name
from utils.record_cache import PublishedRecordCache
from utils.telegram_io import MediaTooLargeError


def _service(github, fetcher, notifier, records=None):
    return PublishService(
        github=github,
        fetcher=fetcher,
        notifier=notifier,
        records=records if records is not None else PublishedRecordCache(),
        max_content_length=20,
        max_file_size=1024,
        default_label="动态",
        clock=lambda: 1_700_000_123,
    )


def test_media_file_name():
    assert media_file_name(SubmissionKind.PHOTO, 1) == "photo_1.jpg"
    assert media_file_name(SubmissionKind.VIDEO, 2) == "video_2.mp4"


@pytest.mark.asyncio
async def test_text_publish_skips_upload_and_uses_default_label(github, fetcher, notifier):
    records = PublishedRecordCache()
    service = _service(github, fetcher, notifier, records)

    record = await service.publish(1, PendingSubmission(kind=SubmissionKind.TEXT, caption="你好"))

    assert fetcher.calls == []
    assert github.uploads == []
    assert github.created == [{"title": "1700000123", "body": "你好", "labels": ["动态"]}]
    assert records.get(record.number).content == "你好"


@pytest.mark.asyncio
async def test_content_override_wins(github, fetcher, notifier):
    service = _service(github, fetcher, notifier)
    submission = PendingSubmission(kind=SubmissionKind.TEXT, caption="旧", labels=["日常"])

    await service.publish(1, submission, "新", ["日常"])

    assert github.created[0]["body"] == "新"


@pytest.mark.asyncio
async def test_video_publish_appends_markdown(github, fetcher, notifier):
    service = _service(github, fetcher, notifier)
    submission = PendingSubmission(kind=SubmissionKind.VIDEO, media_ref="vid", file_size=10)

    record = await service.publish(1, submission, labels=["其他"])

    url = "https://raw.githubusercontent.com/owner/moments-files/main/moments/1700000123_video_1700000123.mp4"
    assert github.created[0]["body"] == f"🎥 分享了一个视频\n![{url}]({url})"
    assert record.media_urls == [url]
    assert record.labels == ["其他"]


@pytest.mark.asyncio
async def test_too_long_rejected_before_remote_call(github, fetcher, notifier):
    service = _service(github, fetcher, notifier)

    with pytest.raises(ContentTooLongError):
        await service.publish(1, PendingSubmission(kind=SubmissionKind.PHOTO, media_ref="p", caption="x" * 21))

    assert fetcher.calls == []
    assert github.created == []


@pytest.mark.asyncio
async def test_oversized_video_rejected_before_download(github, fetcher, notifier):
    service = _service(github, fetcher, notifier)

    with pytest.raises(MediaTooLargeError):
        await service.publish(1, PendingSubmission(kind=SubmissionKind.VIDEO, media_ref="v", file_size=4096))

    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_create_failure_not_cached(github, fetcher, notifier):
    records = PublishedRecordCache()
    service = _service(github, fetcher, notifier, records)
    github.fail_create = RuntimeError("GitHub API 错误 (500)")

    with pytest.raises(RuntimeError):
        await service.publish(1, PendingSubmission(kind=SubmissionKind.TEXT, caption="x"))

    assert len(records) == 0
