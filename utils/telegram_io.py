"""
Telegram 侧的 I/O：文件下载与消息推送
"""
import asyncio
import logging
from typing import Optional

from telegram.error import TelegramError

from utils.helper_functions import clean_text

logger = logging.getLogger(__name__)


class FileFetchError(RuntimeError):
    """从 Telegram 下载文件失败"""


class MediaTooLargeError(ValueError):
    """媒体文件超过大小限制"""


class TelegramFileFetcher:
    """按 file_id 下载文件内容，失败时按次数线性退避重试"""

    def __init__(self, bot, *, max_retries: int = 3, retry_delay: float = 1.0):
        self._bot = bot
        self.max_retries = max(1, int(max_retries))
        self.retry_delay = float(retry_delay)

    async def fetch(self, file_id: str, max_size: Optional[int] = None) -> bytes:
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                tg_file = await self._bot.get_file(file_id)
                if max_size and tg_file.file_size and tg_file.file_size > max_size:
                    raise MediaTooLargeError(f"文件过大（{tg_file.file_size} 字节），上限 {max_size} 字节")
                data = await tg_file.download_as_bytearray()
                if max_size and len(data) > max_size:
                    raise MediaTooLargeError(f"文件过大（{len(data)} 字节），上限 {max_size} 字节")
                return bytes(data)
            except TelegramError as e:
                last_error = e
                if attempt == self.max_retries:
                    break
                logger.warning(f"下载文件失败，第{attempt}次尝试: {e}，等待重试...")
                await asyncio.sleep(self.retry_delay * attempt)
        raise FileFetchError(f"下载文件失败，已重试{self.max_retries}次: {last_error}") from last_error


class Notifier:
    """向指定聊天推送文本，发送前统一清理编码"""

    def __init__(self, bot):
        self._bot = bot

    async def notify(self, chat_id: int, text: str, reply_markup=None) -> bool:
        try:
            await self._bot.send_message(chat_id=chat_id, text=clean_text(text), reply_markup=reply_markup)
            return True
        except TelegramError as e:
            logger.error(f"发送消息失败: chat_id={chat_id}, error={e}")
            return False
