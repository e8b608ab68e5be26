"""
内联按钮回调处理

按回调数据前缀分发：
- label:<名称> / label:refresh / label:cancel
- setdefault:<名称> / setdefault:refresh
- delete:confirm:<编号> / delete:cancel
"""
import logging

from telegram import Update
from telegram.error import BadRequest
from telegram.ext import CallbackContext

from models.records import Reply
from models.state import CALLBACK
from utils.helper_functions import clean_text, owner_only
from utils.relay import Relay, get_relay

logger = logging.getLogger(__name__)


async def dispatch_callback(relay: Relay, user_id: int, data: str) -> Reply:
    if data.startswith(CALLBACK['LABEL']):
        return await relay.on_label_chosen(user_id, data[len(CALLBACK['LABEL']):])

    if data.startswith(CALLBACK['SET_DEFAULT']):
        return await relay.on_set_default_label(user_id, data[len(CALLBACK['SET_DEFAULT']):])

    if data.startswith(CALLBACK['DELETE']):
        action = data[len(CALLBACK['DELETE']):]
        if action.startswith("confirm:"):
            return await relay.on_delete_confirm(user_id, action[len("confirm:"):])
        if action == "cancel":
            return await relay.on_delete_cancel(user_id)

    logger.warning(f"未知回调数据: {data}")
    return Reply("❌ 未知操作")


@owner_only
async def handle_callback(update: Update, context: CallbackContext):
    query = update.callback_query
    await query.answer()

    data = query.data or ""
    user_id = update.effective_user.id
    if data.startswith(f"{CALLBACK['DELETE']}confirm:"):
        await query.edit_message_text("⏳ 正在删除动态...")

    reply = await dispatch_callback(get_relay(context), user_id, data)
    try:
        await query.edit_message_text(clean_text(reply.text), reply_markup=reply.keyboard)
    except BadRequest as e:
        # 内容未变化时 Telegram 会拒绝编辑
        logger.debug(f"编辑回调消息失败: {e}")
