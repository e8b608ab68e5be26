"""
普通消息处理模块
图片、视频、文字消息交给 Relay 处理，回复统一在这里发送
"""
import logging
from typing import Optional

from telegram import Update
from telegram.ext import CallbackContext

from models.records import Reply
from utils.helper_functions import clean_text, owner_only
from utils.relay import get_relay

logger = logging.getLogger(__name__)


async def send_reply(update: Update, reply: Optional[Reply]) -> None:
    message = update.effective_message
    if reply is None or message is None:
        return
    await message.reply_text(clean_text(reply.text), reply_markup=reply.keyboard)


@owner_only
async def handle_photo(update: Update, context: CallbackContext):
    """取最大尺寸的图片"""
    message = update.message
    if message is None or not message.photo:
        return
    photo = message.photo[-1]
    reply = await get_relay(context).on_photo(update.effective_user.id, photo.file_id, message.caption or "")
    await send_reply(update, reply)


@owner_only
async def handle_video(update: Update, context: CallbackContext):
    message = update.message
    if message is None or message.video is None:
        return
    video = message.video
    reply = await get_relay(context).on_video(
        update.effective_user.id,
        video.file_id,
        message.caption or "",
        file_size=video.file_size,
    )
    await send_reply(update, reply)


@owner_only
async def handle_text(update: Update, context: CallbackContext):
    # 编辑过的消息没有 update.message，不作为新内容处理
    message = update.message
    if message is None:
        logger.debug("忽略非新消息的文字更新")
        return
    user_id = update.effective_user.id
    text = message.text or ""
    logger.info(f"收到文字消息: user_id={user_id}, 长度={len(text)}")
    reply = await get_relay(context).on_text(user_id, text)
    await send_reply(update, reply)
