"""
测试公共夹具：用内存替身代替 GitHub、Telegram 与 JobQueue
"""
import pytest

from models.records import RemoteRecord
from utils.label_resolver import LabelResolver
from utils.publish_service import PublishService
from utils.record_cache import PublishedRecordCache
from utils.relay import Relay
from utils.session_store import SessionStore

USER_ID = 10001


class FakeGitHub:
    def __init__(self):
        self.labels = ["动态", "日常", "其他"]
        self.issues = {}
        self.uploads = []
        self.created = []
        self.updated = []
        self.closed = []
        self.get_calls = []
        self.fail_create = None
        self.fail_update = None
        self.fail_close = None
        self.fail_get = None
        self.fail_labels = None
        self._next_number = 1

    def add_issue(self, number, body, labels=None, state="open"):
        self.issues[number] = RemoteRecord(
            id=number * 100,
            number=number,
            title=str(number),
            body=body,
            html_url=f"https://github.com/owner/moments/issues/{number}",
            state=state,
            labels=list(labels or []),
        )
        self._next_number = max(self._next_number, number + 1)
        return self.issues[number]

    async def get_labels(self):
        if self.fail_labels:
            raise self.fail_labels
        return list(self.labels)

    async def create_record(self, title, body, labels):
        if self.fail_create:
            raise self.fail_create
        number = self._next_number
        self.created.append({"title": title, "body": body, "labels": list(labels)})
        record = self.add_issue(number, body, labels)
        record.title = title
        return record

    async def update_record(self, number, body, labels):
        if self.fail_update:
            raise self.fail_update
        self.updated.append({"number": number, "body": body, "labels": list(labels)})
        record = self.issues.get(number) or self.add_issue(number, body, labels)
        record.body = body
        record.labels = list(labels)
        return record

    async def close_record(self, number):
        if self.fail_close:
            raise self.fail_close
        self.closed.append(number)
        if number in self.issues:
            self.issues[number].state = "closed"

    async def get_record(self, number):
        self.get_calls.append(number)
        if self.fail_get:
            raise self.fail_get
        if number not in self.issues:
            raise RuntimeError("GitHub API 错误 (404): Not Found")
        return self.issues[number]

    async def list_recent_open_records(self, limit):
        records = [r for r in self.issues.values() if r.state == "open"]
        records.sort(key=lambda r: r.number, reverse=True)
        return records[:limit]

    async def upload_file(self, name, content, message, *, timestamp=None):
        self.uploads.append({"name": name, "content": content, "message": message})
        return f"https://raw.githubusercontent.com/owner/moments-files/main/moments/{timestamp}_{name}"


class FakeFetcher:
    def __init__(self, data=b"media-bytes"):
        self.data = data
        self.calls = []
        self.error = None

    async def fetch(self, file_id, max_size=None):
        self.calls.append(file_id)
        if self.error:
            raise self.error
        return self.data


class FakeNotifier:
    def __init__(self):
        self.messages = []

    async def notify(self, chat_id, text, reply_markup=None):
        self.messages.append((chat_id, text))
        return True

    def texts(self):
        return [text for _, text in self.messages]


class FakeScheduler:
    """记录安排的任务，由测试手动触发"""

    def __init__(self):
        self.jobs = {}
        self.arm_calls = []
        self.cancelled = []

    def is_armed(self, user_id):
        return user_id in self.jobs

    def arm(self, user_id, delay, callback):
        self.arm_calls.append((user_id, delay))
        if user_id in self.jobs:
            return False
        self.jobs[user_id] = callback
        return True

    def cancel(self, user_id):
        if self.jobs.pop(user_id, None) is not None:
            self.cancelled.append(user_id)

    async def fire(self, user_id):
        callback = self.jobs.pop(user_id)
        await callback()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def records():
    return PublishedRecordCache()


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def relay(github, fetcher, notifier, scheduler, records, sessions):
    publisher = PublishService(
        github=github,
        fetcher=fetcher,
        notifier=notifier,
        records=records,
        max_content_length=5000,
        max_file_size=50 * 1024 * 1024,
        default_label="动态",
        clock=lambda: 1_700_000_000,
    )
    return Relay(
        sessions=sessions,
        labels=LabelResolver(github.get_labels, ttl_seconds=1800),
        records=records,
        github=github,
        publisher=publisher,
        notifier=notifier,
        scheduler=scheduler,
        wait_time=300,
        max_content_length=5000,
        max_file_size=50 * 1024 * 1024,
        default_label="动态",
        recent_limit=10,
    )
