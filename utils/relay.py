"""
动态中转核心

把用户的图片/视频/文字/标签选择/编辑/删除事件转换为会话状态变化，
在终态时调用发布服务或 GitHub 接口。

投稿流程：
    接收内容 -> 等待选择标签 -> (文字) 立即发布
                              -> (媒体) 设置标签并安排自动发布，期间文字只更新正文
编辑流程：
    /edit <编号> -> 选择标签（可选）-> 发送新内容 -> 提交更新
删除流程：
    /delete <编号> -> 确认按钮（携带编号）-> 关闭 Issue

发布与提交均为"先取出再尝试"：失败不重试，待处理内容也不会保留。
"""
from __future__ import annotations

import logging
import time
from functools import partial
from typing import List, Optional

from config import settings
from models.records import PendingEdit, PendingSubmission, PublishedRecord, Reply
from models.state import LABEL_CANCEL, LABEL_REFRESH, SubmissionKind
from ui.keyboards import Keyboards
from utils.auto_publish import JobQueueScheduler
from utils.github_client import GitHubClient
from utils.helper_functions import clean_text, format_labels, parse_record_number, preview
from utils.label_resolver import LabelResolver
from utils.publish_service import ContentTooLongError, PublishService, check_content_length
from utils.record_cache import PublishedRecordCache
from utils.session_store import SessionStore
from utils.telegram_io import Notifier

logger = logging.getLogger(__name__)

HELP_TEXT = """使用方法：
1. 发送图片/视频，会自动弹出标签选择按钮
2. 发送文字消息，也会弹出标签选择按钮
3. 发送 /tags 选择默认标签
4. 发送 /label <标签名> 设置默认标签
5. 发送 /refresh 刷新标签列表
6. 发送 /publish 立即发布待发布的媒体
7. 发送 /edit 查看最近的动态列表
8. 发送 /edit <编号> 编辑指定动态
9. 发送 /delete 查看最近的动态列表
10. 发送 /delete <编号> 删除指定动态
11. 发送 /cancel 取消编辑

💡 提示：
• 发送媒体文件或文字后，选择标签即可发布动态
• 选择标签后，可以继续发送文字来更新动态内容
• 媒体文件会在选择标签{minutes}分钟后自动发布（如果未手动发布）
• 发布后可以使用 /edit 命令编辑动态内容
• 可以使用 /delete 命令删除不需要的动态"""

MEDIA_RECEIVED = {
    SubmissionKind.PHOTO: "📷 图片已接收！",
    SubmissionKind.VIDEO: "🎥 视频已接收！",
}


class Relay:
    def __init__(
        self,
        *,
        sessions: SessionStore,
        labels: LabelResolver,
        records: PublishedRecordCache,
        github: GitHubClient,
        publisher: PublishService,
        notifier: Notifier,
        scheduler: JobQueueScheduler,
        wait_time: float = settings.WAIT_TIME,
        max_content_length: int = settings.MAX_CONTENT_LENGTH,
        max_file_size: int = settings.MAX_FILE_SIZE,
        default_label: str = settings.DEFAULT_LABEL,
        recent_limit: int = settings.RECENT_LIMIT,
    ):
        self.sessions = sessions
        self.labels = labels
        self.records = records
        self.github = github
        self.publisher = publisher
        self.notifier = notifier
        self.scheduler = scheduler
        self.wait_time = wait_time
        self.max_content_length = max_content_length
        self.max_file_size = max_file_size
        self.default_label = default_label
        self.recent_limit = recent_limit

    @property
    def wait_minutes(self) -> int:
        return max(1, int(self.wait_time // 60))

    def help_text(self) -> str:
        return HELP_TEXT.format(minutes=self.wait_minutes)

    async def _label_keyboard(self):
        return Keyboards.label_choice(await self.labels.current_labels())

    # =========================================================================
    # 投稿：接收内容
    # =========================================================================
    async def on_photo(self, user_id: int, file_id: str, caption: str = "") -> Reply:
        return await self._capture(user_id, SubmissionKind.PHOTO, file_id, caption)

    async def on_video(self, user_id: int, file_id: str, caption: str = "", file_size: Optional[int] = None) -> Reply:
        if file_size and file_size > self.max_file_size:
            logger.info(f"视频过大被拒绝: user_id={user_id}, size={file_size}")
            return Reply(f"❌ 视频文件过大，请上传小于 {self.max_file_size // (1024 * 1024)}MB 的视频")
        return await self._capture(user_id, SubmissionKind.VIDEO, file_id, caption, file_size)

    async def _capture(
        self,
        user_id: int,
        kind: SubmissionKind,
        media_ref: str,
        caption: str,
        file_size: Optional[int] = None,
    ) -> Reply:
        caption = clean_text(caption) if caption else ""
        try:
            check_content_length(caption, self.max_content_length)
        except ContentTooLongError as e:
            return Reply(f"❌ {e}")

        submission = PendingSubmission(kind=kind, media_ref=media_ref, caption=caption, file_size=file_size)
        existing = self.sessions.add_submission(user_id, submission)
        if existing is not None:
            # 已有待发布内容：只更新文字，不追加第二条
            if caption:
                self.sessions.update_caption(user_id, caption)
            logger.info(f"已有待发布内容，新媒体未添加: user_id={user_id}, 现有类型={existing.kind.value}")
            message = "⚠️ 已有待发布的内容，本次媒体未添加。"
            if caption:
                message += f"\n\n已更新文字：{caption}"
            message += "\n\n💡 发送 /publish 立即发布，或点击「❌ 取消」放弃后重新发送。"
            return Reply(message)

        logger.info(f"收到{kind.value}，等待选择标签: user_id={user_id}")
        message = MEDIA_RECEIVED[kind]
        if caption:
            message += f"\n\n当前文字：{caption}"
        default_label = self.sessions.get_default_label(user_id)
        if default_label:
            message += f"\n\n🏷️ 默认标签：{default_label}"
        message += "\n\n💡 请选择标签，然后可以发送文字来更新动态内容！"
        return Reply(message, await self._label_keyboard())

    async def on_text(self, user_id: int, text: str) -> Optional[Reply]:
        """
        处理普通文字

        - 编辑模式下作为新内容提交编辑
        - 有待发布内容时更新正文（不改变状态，不重置自动发布计时）
        - 否则创建纯文字待发布内容并弹出标签选择
        """
        text = clean_text(text)
        if not text.strip():
            return Reply("❌ 内容不能为空")
        try:
            check_content_length(text, self.max_content_length)
        except ContentTooLongError as e:
            return Reply(f"❌ {e}")

        if self.sessions.is_editing(user_id):
            return await self._commit_edit(user_id, text)

        updated = self.sessions.update_caption(user_id, text)
        if updated is None:
            submission = PendingSubmission(kind=SubmissionKind.TEXT, caption=text)
            existing = self.sessions.add_submission(user_id, submission)
            if existing is None:
                logger.info(f"收到文字，等待选择标签: user_id={user_id}")
                return Reply(
                    f"📝 文字已接收！\n\n当前文字：{text}\n\n💡 请选择标签来发布动态！",
                    await self._label_keyboard(),
                )
            updated = self.sessions.update_caption(user_id, text)
            if updated is None:
                return Reply("❌ 没有待处理的内容")

        logger.info(f"更新待发布内容文字: user_id={user_id}, 类型={updated.kind.value}")
        if updated.labels:
            return Reply(
                f"✏️ 已更新动态文字\n\n当前文字：{text}\n🏷️ 标签：{format_labels(updated.labels)}\n\n"
                f"💡 发送 /publish 立即发布，或等待自动发布。"
            )
        return Reply(
            f"✏️ 已更新动态文字\n\n当前文字：{text}\n\n💡 请选择标签来发布动态！",
            await self._label_keyboard(),
        )

    # =========================================================================
    # 标签选择
    # =========================================================================
    async def on_label_chosen(self, user_id: int, label: str) -> Reply:
        if label == LABEL_REFRESH:
            return await self._refresh_prompt()
        if label == LABEL_CANCEL:
            return self._cancel_pending(user_id)

        session = self.sessions.session(user_id)
        # 编辑优先
        if session.edit is not None and self.sessions.set_edit_labels(user_id, [label]) is not None:
            logger.info(f"编辑标签已选择: user_id={user_id}, issue=#{session.edit.record_number}, label={label}")
            return Reply(f"✅ 已选择标签：{label}\n\n💡 现在可以发送新的内容来更新动态。")

        updated = self.sessions.set_submission_labels(user_id, [label])
        if updated is None:
            return Reply("❌ 没有待处理的内容")

        if updated.kind == SubmissionKind.TEXT:
            record = await self._publish_pending(user_id, show_progress=False)
            if record is None:
                return Reply(f"✅ 已选择标签：{label}\n\n❌ 文字动态发布失败")
            return Reply(f"✅ 已选择标签：{label}\n\n✅ 文字动态已发布 #{record.number}")

        self.scheduler.arm(user_id, self.wait_time, partial(self.auto_publish, user_id))
        return Reply(
            f"✅ 已选择标签：{label}\n\n"
            f"💡 你可以继续发送文字来更新动态内容，发送 /publish 立即发布，或者等待{self.wait_minutes}分钟后自动发布。"
        )

    async def _refresh_prompt(self) -> Reply:
        try:
            labels = await self.labels.force_refresh()
        except Exception as e:
            return Reply(f"❌ 刷新标签失败：{e}")
        return Reply(
            "🔄 标签已刷新！\n\n💡 请选择标签，然后可以发送文字来更新动态内容！",
            Keyboards.label_choice(labels),
        )

    def _cancel_pending(self, user_id: int) -> Reply:
        if self.sessions.remove_edit(user_id):
            logger.info(f"通过按钮取消编辑: user_id={user_id}")
            return Reply("❌ 已取消编辑")
        removed = self.sessions.take_submission(user_id)
        self.scheduler.cancel(user_id)
        if removed is None:
            return Reply("❌ 没有待处理的内容")
        logger.info(f"已取消待发布内容: user_id={user_id}")
        return Reply("❌ 已取消标签选择")

    # =========================================================================
    # 发布
    # =========================================================================
    async def auto_publish(self, user_id: int) -> None:
        """自动发布任务回调：触发时重新确认待发布内容是否存在"""
        logger.info(f"自动发布触发: user_id={user_id}")
        await self._publish_pending(user_id)

    async def on_publish_now(self, user_id: int) -> Optional[Reply]:
        if self.sessions.get_submission(user_id) is None:
            return Reply("❌ 没有待发布的内容")
        await self._publish_pending(user_id)
        return None

    def _fallback_labels(self, user_id: int) -> List[str]:
        default_label = self.sessions.get_default_label(user_id)
        return [default_label] if default_label else [self.default_label]

    async def _publish_pending(
        self,
        user_id: int,
        content_override: str = "",
        *,
        show_progress: bool = True,
    ) -> Optional[PublishedRecord]:
        submission = self.sessions.take_submission(user_id)
        if submission is None:
            logger.info(f"没有待发布内容，跳过发布: user_id={user_id}")
            return None
        self.scheduler.cancel(user_id)

        labels = submission.labels or self._fallback_labels(user_id)
        is_text = submission.kind == SubmissionKind.TEXT
        if show_progress:
            await self.notifier.notify(user_id, "⏳ 正在发布文字动态..." if is_text else "⏳ 正在处理媒体文件...")

        try:
            record = await self.publisher.publish(user_id, submission, content_override, labels)
        except ValueError as e:
            logger.warning(f"发布被拒绝: user_id={user_id}, 原因: {e}")
            await self.notifier.notify(user_id, f"❌ {e}")
            return None
        except Exception as e:
            logger.error(f"发布动态失败: user_id={user_id}, error={e}", exc_info=True)
            await self.notifier.notify(user_id, "❌ 发布失败，请稍后重试")
            return None

        title = "✅ 文字动态发布成功！" if is_text else "✅ 动态发布成功！"
        message = title
        if record.html_url:
            message += f"\n\n🔗 查看链接：{record.html_url}"
        await self.notifier.notify(user_id, message)
        return record

    # =========================================================================
    # 标签管理
    # =========================================================================
    async def on_show_labels(self, user_id: int) -> Reply:
        labels = await self.labels.current_labels()
        message = "📋 请选择一个标签作为默认标签："
        default_label = self.sessions.get_default_label(user_id)
        if default_label:
            message += f"\n\n当前默认标签：{default_label}"
        return Reply(message, Keyboards.default_label_choice(labels))

    async def on_refresh_labels(self, user_id: int) -> Reply:
        try:
            labels = await self.labels.force_refresh()
        except Exception:
            return Reply("❌ 刷新标签失败，请稍后重试")
        lines = [f"{i}. {label}" for i, label in enumerate(labels, start=1)]
        return Reply("✅ 标签列表已刷新！\n\n📋 可用标签：\n" + "\n".join(lines))

    async def on_set_default_label(self, user_id: int, label: str, *, validate: bool = False) -> Reply:
        label = (label or "").strip()
        if not label:
            return Reply("❌ 格式错误\n正确格式：/label <标签名>")
        if label == LABEL_REFRESH:
            try:
                labels = await self.labels.force_refresh()
            except Exception as e:
                return Reply(f"❌ 刷新标签失败：{e}")
            return Reply("🔄 标签已刷新！\n\n📋 请选择一个标签作为默认标签：", Keyboards.default_label_choice(labels))
        if validate:
            labels = await self.labels.current_labels()
            if label not in labels:
                lines = "\n".join(f"• {item}" for item in labels)
                return Reply(f"❌ 无效的标签\n\n可用标签：\n{lines}\n\n💡 发送 /refresh 刷新标签列表")
        self.sessions.set_default_label(user_id, label)
        return Reply(f"✅ 默认标签已设置为：{label}\n下次发动态会自动带上该标签。")

    # =========================================================================
    # 编辑
    # =========================================================================
    async def _lookup_record(self, number: int) -> PublishedRecord:
        """先查本地缓存，未命中时从 GitHub 获取并写入缓存"""
        cached = self.records.get(number)
        if cached is not None:
            return cached
        remote = await self.github.get_record(number)
        record = PublishedRecord.from_remote(remote)
        self.records.put(record)
        logger.info(f"已从 GitHub 获取动态 #{number} 并缓存")
        return record

    async def _recent_list(self, command: str) -> Reply:
        try:
            issues = await self.github.list_recent_open_records(self.recent_limit)
        except Exception as e:
            logger.error(f"获取动态列表失败: {e}")
            return Reply(f"❌ 获取动态列表失败：{e}")
        if not issues:
            return Reply("📝 暂无动态")

        if command == "delete":
            lines = [f"#{issue.number} - {preview(issue.body, 50)}" for issue in issues]
            header = "🗑️ 选择要删除的动态：\n\n"
            footer = "\n\n💡 发送 /delete <编号> 删除指定动态\n例如：/delete 123"
        else:
            lines = [f"{i}. #{issue.number} - {preview(issue.body, 50)}" for i, issue in enumerate(issues, start=1)]
            header = "📋 最近的动态列表：\n\n"
            footer = "\n\n💡 发送 /edit <编号> 编辑指定动态\n例如：/edit 123"
        return Reply(header + "\n".join(lines) + footer)

    async def on_edit_start(self, user_id: int, arg: Optional[str] = None) -> Reply:
        if arg is None:
            return await self._recent_list("edit")
        number = parse_record_number(arg)
        if number is None:
            return Reply("❌ 无效的动态编号\n\n💡 发送 /edit 查看最近的动态列表")

        try:
            record = await self._lookup_record(number)
        except Exception as e:
            logger.error(f"获取动态 #{number} 失败: {e}")
            return Reply(f"❌ 无法获取动态 #{number}\n\n错误：{e}")

        self.sessions.put_edit(user_id, PendingEdit.start(record))
        logger.info(f"进入编辑模式: user_id={user_id}, issue=#{number}")

        message = f"✏️ 正在编辑动态 #{number}\n\n📝 当前内容：\n```\n{record.content}\n```\n\n"
        if record.labels:
            message += f"🏷️ 当前标签：{format_labels(record.labels)}\n\n"
        message += "💡 请选择标签，然后发送新的内容来更新动态\n❌ 发送 /cancel 取消编辑"
        return Reply(message, await self._label_keyboard())

    async def _commit_edit(self, user_id: int, text: str) -> Optional[Reply]:
        edit = self.sessions.take_edit(user_id)
        if edit is None:
            return None
        number = edit.record_number

        try:
            record = await self._lookup_record(number)
        except Exception as e:
            logger.error(f"提交编辑时获取动态 #{number} 失败: {e}")
            return Reply(f"❌ 无法获取动态 #{number}：{e}")

        labels = edit.selected_labels or edit.original_labels or record.labels or [self.default_label]
        await self.notifier.notify(user_id, "⏳ 正在更新动态...")

        try:
            remote = await self.github.update_record(number, text, labels)
        except Exception as e:
            logger.error(f"更新动态 #{number} 失败: {e}", exc_info=True)
            return Reply(f"❌ 更新动态失败：{e}")

        record.content = text
        record.labels = list(labels)
        record.updated_at = time.time()
        if remote.html_url:
            record.html_url = remote.html_url
        self.records.put(record)
        logger.info(f"动态 #{number} 更新成功: user_id={user_id}")

        message = f"✅ 动态 #{number} 更新成功！\n\n📝 新内容：\n```\n{text}\n```\n\n"
        message += f"🏷️ 标签：{format_labels(labels)}\n\n"
        if record.html_url:
            message += f"🔗 查看链接：{record.html_url}"
        return Reply(message.rstrip())

    async def on_edit_cancel(self, user_id: int) -> Reply:
        if not self.sessions.remove_edit(user_id):
            return Reply("❌ 当前不在编辑模式")
        logger.info(f"已取消编辑: user_id={user_id}")
        return Reply("✅ 已取消编辑")

    # =========================================================================
    # 删除
    # =========================================================================
    async def on_delete_request(self, user_id: int, arg: Optional[str] = None) -> Reply:
        if arg is None:
            return await self._recent_list("delete")
        number = parse_record_number(arg)
        if number is None:
            return Reply("❌ 无效的动态编号\n\n💡 发送 /delete 查看最近的动态列表")

        try:
            record = await self._lookup_record(number)
        except Exception as e:
            logger.error(f"获取动态 #{number} 失败: {e}")
            return Reply(f"❌ 无法获取动态 #{number}\n\n错误：{e}")

        message = f"🗑️ 确认删除动态 #{number}？\n\n📝 动态内容：\n```\n{preview(record.content, 100)}\n```\n\n"
        if record.labels:
            message += f"🏷️ 标签：{format_labels(record.labels)}\n\n"
        message += "⚠️ 删除后无法恢复，请确认！"
        return Reply(message, Keyboards.delete_confirm(number))

    async def on_delete_confirm(self, user_id: int, raw_number: str) -> Reply:
        number = parse_record_number(raw_number)
        if number is None:
            return Reply("❌ 无效的动态编号")
        try:
            await self.github.close_record(number)
        except Exception as e:
            logger.error(f"删除动态 #{number} 失败: {e}")
            return Reply(f"❌ 删除失败：{e}")
        self.records.remove(number)
        logger.info(f"动态 #{number} 已删除: user_id={user_id}")
        return Reply(f"✅ 动态 #{number} 已删除")

    async def on_delete_cancel(self, user_id: int) -> Reply:
        return Reply("❌ 已取消删除")


def get_relay(context) -> Relay:
    """从 bot_data 取出启动时注册的 Relay 实例"""
    return context.bot_data["relay"]
