"""
标签缓存测试
"""
import pytest

from utils.label_resolver import LabelResolver


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class _Remote:
    def __init__(self, labels):
        self.labels = labels
        self.calls = 0
        self.error = None

    async def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.labels)


@pytest.mark.asyncio
async def test_fresh_cache_skips_remote_call():
    clock = _Clock()
    remote = _Remote(["旅行", "美食"])
    resolver = LabelResolver(remote, ttl_seconds=1800, clock=clock)

    assert await resolver.current_labels() == ["旅行", "美食"]
    clock.now += 1799
    assert await resolver.current_labels() == ["旅行", "美食"]
    assert remote.calls == 1

    clock.now += 2
    await resolver.current_labels()
    assert remote.calls == 2


@pytest.mark.asyncio
async def test_remote_failure_without_cache_returns_defaults():
    remote = _Remote([])
    remote.error = RuntimeError("网络错误")
    resolver = LabelResolver(remote, defaults=("动态", "日常", "其他"))

    assert await resolver.current_labels() == ["动态", "日常", "其他"]


@pytest.mark.asyncio
async def test_remote_failure_returns_stale_cache():
    clock = _Clock()
    remote = _Remote(["旅行"])
    resolver = LabelResolver(remote, ttl_seconds=10, clock=clock)
    await resolver.current_labels()

    clock.now += 60
    remote.error = RuntimeError("网络错误")

    assert await resolver.current_labels() == ["旅行"]


@pytest.mark.asyncio
async def test_force_refresh_always_calls_remote():
    remote = _Remote(["旅行"])
    resolver = LabelResolver(remote)
    await resolver.current_labels()

    remote.labels = ["旅行", "美食"]
    assert await resolver.force_refresh() == ["旅行", "美食"]
    assert remote.calls == 2
    # 刷新结果对之后的读取可见
    assert await resolver.current_labels() == ["旅行", "美食"]
    assert remote.calls == 2


@pytest.mark.asyncio
async def test_force_refresh_failure_raises_and_keeps_cache():
    remote = _Remote(["旅行"])
    resolver = LabelResolver(remote)
    await resolver.current_labels()
    before = resolver.cached()

    remote.error = RuntimeError("GitHub API 错误 (500)")
    with pytest.raises(RuntimeError):
        await resolver.force_refresh()

    assert resolver.cached() == before


@pytest.mark.asyncio
async def test_empty_remote_uses_defaults_and_dedupes():
    remote = _Remote([])
    resolver = LabelResolver(remote, defaults=("动态",))
    assert await resolver.current_labels() == ["动态"]

    remote.labels = ["日常", " 日常 ", "", "动态"]
    assert await resolver.force_refresh() == ["日常", "动态"]
