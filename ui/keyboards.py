"""
内联键盘构建
"""
import logging
from typing import List, Sequence

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from models.state import CALLBACK, LABEL_CANCEL, LABEL_REFRESH

logger = logging.getLogger(__name__)

# Telegram 限制 callback_data 不超过 64 字节
MAX_CALLBACK_DATA_BYTES = 64


def _rows(buttons: List[InlineKeyboardButton], per_row: int) -> List[List[InlineKeyboardButton]]:
    return [buttons[i:i + per_row] for i in range(0, len(buttons), per_row)]


def _label_buttons(labels: Sequence[str], prefix: str) -> List[InlineKeyboardButton]:
    """生成标签按钮；回调数据超长的标签跳过，否则整个键盘会被 Telegram 拒绝"""
    buttons = []
    for label in labels:
        data = f"{prefix}{label}"
        if len(data.encode('utf-8')) > MAX_CALLBACK_DATA_BYTES:
            logger.warning(f"标签过长，回调数据超过 {MAX_CALLBACK_DATA_BYTES} 字节，已跳过: {label}")
            continue
        buttons.append(InlineKeyboardButton(label, callback_data=data))
    return buttons


class Keyboards:
    LABELS_PER_ROW = 3

    @staticmethod
    def label_choice(labels: Sequence[str]) -> InlineKeyboardMarkup:
        """标签选择键盘：每行 3 个标签，最后一行为刷新/取消"""
        rows = _rows(_label_buttons(labels, CALLBACK['LABEL']), Keyboards.LABELS_PER_ROW)
        rows.append([
            InlineKeyboardButton("🔄 刷新", callback_data=f"{CALLBACK['LABEL']}{LABEL_REFRESH}"),
            InlineKeyboardButton("❌ 取消", callback_data=f"{CALLBACK['LABEL']}{LABEL_CANCEL}"),
        ])
        return InlineKeyboardMarkup(rows)

    @staticmethod
    def default_label_choice(labels: Sequence[str]) -> InlineKeyboardMarkup:
        """默认标签选择键盘（/tags）"""
        rows = _rows(_label_buttons(labels, CALLBACK['SET_DEFAULT']), Keyboards.LABELS_PER_ROW)
        rows.append([InlineKeyboardButton("🔄 刷新", callback_data=f"{CALLBACK['SET_DEFAULT']}{LABEL_REFRESH}")])
        return InlineKeyboardMarkup(rows)

    @staticmethod
    def delete_confirm(number: int) -> InlineKeyboardMarkup:
        """删除确认键盘，目标编号保存在按钮数据中"""
        return InlineKeyboardMarkup([[
            InlineKeyboardButton("✅ 确认删除", callback_data=f"{CALLBACK['DELETE']}confirm:{number}"),
            InlineKeyboardButton("❌ 取消", callback_data=f"{CALLBACK['DELETE']}cancel"),
        ]])
