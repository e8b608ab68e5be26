"""
辅助函数测试：文本清理、命令参数、权限校验
"""
from types import SimpleNamespace

import pytest

from config import settings
from utils.helper_functions import (
    CLEANED_PLACEHOLDER,
    clean_text,
    get_command_arg,
    get_command_rest,
    owner_only,
    parse_record_number,
    preview,
)


def test_clean_text_keeps_valid_text():
    assert clean_text("你好 👋") == "你好 👋"
    assert clean_text("你好".encode("utf-8")) == "你好"


def test_clean_text_strips_invalid_sequences():
    assert clean_text(b"ab\xffcd") == "abcd"
    assert clean_text("a\ud800b") == "ab"


def test_clean_text_all_invalid_uses_placeholder():
    assert clean_text(b"\xff\xfe") == CLEANED_PLACEHOLDER
    assert clean_text("\ud800") == CLEANED_PLACEHOLDER


def test_command_args():
    assert get_command_arg("/edit") is None
    assert get_command_arg("/edit 42") == "42"
    assert get_command_rest("/label 旅行 日记") == "旅行 日记"
    assert get_command_rest(None) == ""


@pytest.mark.parametrize("raw, expected", [
    ("42", 42),
    ("#7", 7),
    (" 3 ", 3),
    ("0", None),
    ("-1", None),
    ("abc", None),
    (None, None),
])
def test_parse_record_number(raw, expected):
    assert parse_record_number(raw) == expected


def test_preview():
    assert preview("abc", 5) == "abc"
    assert preview("abcdef", 3) == "abc..."


@pytest.mark.asyncio
async def test_owner_only_drops_other_users(monkeypatch):
    monkeypatch.setattr(settings, "OWNER_ID", 1)
    calls = []

    @owner_only
    async def handler(update, context):
        calls.append(update.effective_user.id)
        return "ok"

    stranger = SimpleNamespace(effective_user=SimpleNamespace(id=2))
    owner = SimpleNamespace(effective_user=SimpleNamespace(id=1))

    assert await handler(stranger, None) is None
    assert await handler(owner, None) == "ok"
    assert calls == [1]
