"""
命令处理模块
/start /tags /label /refresh /publish /edit /delete /cancel 以及未知命令
"""
import logging

from telegram import Update
from telegram.ext import CallbackContext

from handlers.message_handlers import send_reply
from models.records import Reply
from utils.helper_functions import get_command_arg, get_command_rest, owner_only
from utils.relay import get_relay

logger = logging.getLogger(__name__)


@owner_only
async def start(update: Update, context: CallbackContext):
    relay = get_relay(context)
    await send_reply(update, Reply("👋 欢迎使用动态发布机器人！\n\n" + relay.help_text()))


@owner_only
async def tags(update: Update, context: CallbackContext):
    reply = await get_relay(context).on_show_labels(update.effective_user.id)
    await send_reply(update, reply)


@owner_only
async def label(update: Update, context: CallbackContext):
    """/label <标签名>，标签名可以包含空格"""
    name = get_command_rest(update.effective_message.text)
    reply = await get_relay(context).on_set_default_label(update.effective_user.id, name, validate=True)
    await send_reply(update, reply)


@owner_only
async def refresh(update: Update, context: CallbackContext):
    await update.effective_message.reply_text("🔄 正在刷新标签列表...")
    reply = await get_relay(context).on_refresh_labels(update.effective_user.id)
    await send_reply(update, reply)


@owner_only
async def publish(update: Update, context: CallbackContext):
    reply = await get_relay(context).on_publish_now(update.effective_user.id)
    await send_reply(update, reply)


@owner_only
async def edit(update: Update, context: CallbackContext):
    arg = get_command_arg(update.effective_message.text)
    reply = await get_relay(context).on_edit_start(update.effective_user.id, arg)
    await send_reply(update, reply)


@owner_only
async def delete(update: Update, context: CallbackContext):
    arg = get_command_arg(update.effective_message.text)
    reply = await get_relay(context).on_delete_request(update.effective_user.id, arg)
    await send_reply(update, reply)


@owner_only
async def cancel(update: Update, context: CallbackContext):
    reply = await get_relay(context).on_edit_cancel(update.effective_user.id)
    await send_reply(update, reply)


@owner_only
async def unknown(update: Update, context: CallbackContext):
    relay = get_relay(context)
    logger.info(f"未知命令: {update.effective_message.text}")
    await send_reply(update, Reply("❓ 未知命令\n\n" + relay.help_text()))
