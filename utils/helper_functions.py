"""
通用辅助函数
"""
import logging
from functools import wraps
from typing import Iterable, Optional

from telegram import Update
from telegram.ext import CallbackContext

from config import settings

logger = logging.getLogger(__name__)

# 文本清理后为空时的占位内容
CLEANED_PLACEHOLDER = "内容已清理"


def clean_text(text) -> str:
    """
    清理字符串，确保是有效的 UTF-8 文本

    无效序列（字节串中的非法字节、str 中的孤立代理项）直接去掉；
    原本有内容但清理后为空时返回占位文字，避免发送空消息。
    """
    if isinstance(text, (bytes, bytearray)):
        raw = bytes(text)
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError:
            cleaned = raw.decode('utf-8', errors='ignore')
    else:
        text = '' if text is None else str(text)
        try:
            text.encode('utf-8')
            return text
        except UnicodeEncodeError:
            cleaned = text.encode('utf-8', errors='ignore').decode('utf-8')
    return cleaned if cleaned else CLEANED_PLACEHOLDER


def is_owner(user_id: Optional[int]) -> bool:
    return user_id is not None and settings.OWNER_ID is not None and int(user_id) == int(settings.OWNER_ID)


def owner_only(func):
    """
    仅允许 OWNER_ID 使用的处理器装饰器

    其他用户的消息和回调直接丢弃，不回复，也不暴露机器人行为。
    """
    @wraps(func)
    async def wrapper(update: Update, context: CallbackContext, *args, **kwargs):
        user = update.effective_user
        user_id = user.id if user else None
        if not is_owner(user_id):
            logger.debug(f"忽略未授权用户的更新: user_id={user_id}")
            return None
        return await func(update, context, *args, **kwargs)
    return wrapper


def get_command_arg(text: Optional[str]) -> Optional[str]:
    """返回命令后的第一个参数，没有时返回 None"""
    parts = (text or '').split()
    if len(parts) < 2:
        return None
    return parts[1]


def get_command_rest(text: Optional[str]) -> str:
    """返回命令后的全部参数（以空格连接）"""
    parts = (text or '').split()
    return ' '.join(parts[1:])


def parse_record_number(raw: Optional[str]) -> Optional[int]:
    try:
        value = int(str(raw).strip().lstrip('#'))
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def preview(text: str, limit: int) -> str:
    text = text or ''
    if len(text) > limit:
        return text[:limit] + '...'
    return text


def format_labels(labels: Iterable[str]) -> str:
    return ', '.join(labels)
