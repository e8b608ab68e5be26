"""
回调分发与默认标签测试
"""
import pytest

from handlers.callback_handlers import dispatch_callback

USER_ID = 10001


@pytest.mark.asyncio
async def test_dispatch_label_choice(relay, sessions):
    await relay.on_photo(USER_ID, "photo")

    reply = await dispatch_callback(relay, USER_ID, "label:日常")

    assert reply.text.startswith("✅ 已选择标签：日常")
    assert sessions.get_submission(USER_ID).labels == ["日常"]


@pytest.mark.asyncio
async def test_dispatch_delete_confirm_and_cancel(relay, github):
    reply = await dispatch_callback(relay, USER_ID, "delete:confirm:15")
    assert reply.text == "✅ 动态 #15 已删除"
    assert github.closed == [15]

    reply = await dispatch_callback(relay, USER_ID, "delete:cancel")
    assert reply.text == "❌ 已取消删除"
    assert github.closed == [15]


@pytest.mark.asyncio
async def test_dispatch_invalid_delete_number(relay, github):
    reply = await dispatch_callback(relay, USER_ID, "delete:confirm:abc")
    assert reply.text == "❌ 无效的动态编号"
    assert github.closed == []


@pytest.mark.asyncio
async def test_dispatch_unknown(relay):
    reply = await dispatch_callback(relay, USER_ID, "something")
    assert reply.text == "❌ 未知操作"


@pytest.mark.asyncio
async def test_dispatch_set_default(relay, sessions):
    reply = await dispatch_callback(relay, USER_ID, "setdefault:其他")
    assert sessions.get_default_label(USER_ID) == "其他"
    assert "默认标签已设置为：其他" in reply.text


@pytest.mark.asyncio
async def test_label_cancel_while_editing_clears_edit_only(relay, github, sessions):
    github.add_issue(3, "内容")
    await relay.on_text(USER_ID, "待发布文字")
    await relay.on_edit_start(USER_ID, "3")

    reply = await dispatch_callback(relay, USER_ID, "label:cancel")

    assert reply.text == "❌ 已取消编辑"
    assert sessions.get_edit(USER_ID) is None
    assert sessions.get_submission(USER_ID).caption == "待发布文字"


@pytest.mark.asyncio
async def test_set_default_label_validates_command_argument(relay, sessions):
    reply = await relay.on_set_default_label(USER_ID, "不存在", validate=True)
    assert reply.text.startswith("❌ 无效的标签")
    assert sessions.get_default_label(USER_ID) is None

    reply = await relay.on_set_default_label(USER_ID, "", validate=True)
    assert reply.text.startswith("❌ 格式错误")

    await relay.on_set_default_label(USER_ID, "日常", validate=True)
    assert sessions.get_default_label(USER_ID) == "日常"


@pytest.mark.asyncio
async def test_show_labels_keyboard(relay, sessions):
    sessions.set_default_label(USER_ID, "日常")

    reply = await relay.on_show_labels(USER_ID)

    data = [b.callback_data for row in reply.keyboard.inline_keyboard for b in row]
    assert data == ["setdefault:动态", "setdefault:日常", "setdefault:其他", "setdefault:refresh"]
    assert "当前默认标签：日常" in reply.text


@pytest.mark.asyncio
async def test_refresh_labels_failure_reported(relay, github):
    github.fail_labels = RuntimeError("GitHub API 错误 (500)")
    reply = await relay.on_refresh_labels(USER_ID)
    assert reply.text == "❌ 刷新标签失败，请稍后重试"


@pytest.mark.asyncio
async def test_refresh_labels_lists_remote(relay, github):
    github.labels = ["旅行"]
    reply = await relay.on_refresh_labels(USER_ID)
    assert "1. 旅行" in reply.text


def test_help_text_mentions_wait_minutes(relay):
    assert "5分钟后自动发布" in relay.help_text()
