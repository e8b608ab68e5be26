"""
动态发布机器人入口
"""
import logging

from telegram import Update
from telegram.ext import (
    Application,
    CallbackContext,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from config import settings
from handlers import callback_handlers, command_handlers, message_handlers
from utils.auto_publish import JobQueueScheduler
from utils.github_client import GitHubClient
from utils.label_resolver import LabelResolver
from utils.publish_service import PublishService
from utils.record_cache import PublishedRecordCache
from utils.relay import Relay
from utils.session_store import SessionStore
from utils.telegram_io import Notifier, TelegramFileFetcher

logger = logging.getLogger(__name__)


def setup_logging():
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    )
    # httpx 每次轮询都会打印请求日志
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_relay(application: Application) -> Relay:
    github = GitHubClient.from_settings()
    notifier = Notifier(application.bot)
    records = PublishedRecordCache(settings.RECORD_CACHE_MAX)
    publisher = PublishService(
        github=github,
        fetcher=TelegramFileFetcher(application.bot),
        notifier=notifier,
        records=records,
        max_content_length=settings.MAX_CONTENT_LENGTH,
        max_file_size=settings.MAX_FILE_SIZE,
        default_label=settings.DEFAULT_LABEL,
    )
    return Relay(
        sessions=SessionStore(),
        labels=LabelResolver(github.get_labels, ttl_seconds=settings.LABEL_CACHE_TTL),
        records=records,
        github=github,
        publisher=publisher,
        notifier=notifier,
        scheduler=JobQueueScheduler(application.job_queue),
        wait_time=settings.WAIT_TIME,
        max_content_length=settings.MAX_CONTENT_LENGTH,
        max_file_size=settings.MAX_FILE_SIZE,
        default_label=settings.DEFAULT_LABEL,
        recent_limit=settings.RECENT_LIMIT,
    )


def register_handlers(application: Application):
    commands = {
        "start": command_handlers.start,
        "help": command_handlers.start,
        "tags": command_handlers.tags,
        "label": command_handlers.label,
        "refresh": command_handlers.refresh,
        "publish": command_handlers.publish,
        "edit": command_handlers.edit,
        "delete": command_handlers.delete,
        "cancel": command_handlers.cancel,
    }
    # 只处理新消息，编辑过的消息不触发任何流程
    new_messages = filters.UpdateType.MESSAGE
    for name, callback in commands.items():
        application.add_handler(CommandHandler(name, callback, filters=new_messages))

    application.add_handler(CallbackQueryHandler(callback_handlers.handle_callback))
    application.add_handler(MessageHandler(new_messages & filters.PHOTO, message_handlers.handle_photo))
    application.add_handler(MessageHandler(new_messages & filters.VIDEO, message_handlers.handle_video))
    application.add_handler(MessageHandler(new_messages & filters.TEXT & ~filters.COMMAND, message_handlers.handle_text))
    application.add_handler(MessageHandler(new_messages & filters.COMMAND, command_handlers.unknown))
    application.add_error_handler(error_handler)


async def error_handler(update: object, context: CallbackContext):
    logger.error(f"处理更新时发生异常: {context.error}", exc_info=context.error)


def main():
    setup_logging()
    settings.validate_settings()

    application = (
        Application.builder()
        .token(settings.TOKEN)
        .concurrent_updates(True)
        .connect_timeout(settings.NET_TIMEOUT)
        .read_timeout(settings.NET_TIMEOUT)
        .write_timeout(settings.NET_TIMEOUT)
        .build()
    )
    if application.job_queue is None:
        raise RuntimeError("JobQueue 不可用，请安装 python-telegram-bot[job-queue]")

    application.bot_data["relay"] = build_relay(application)
    register_handlers(application)

    logger.info(f"机器人启动，仓库: {settings.GITHUB_USERNAME}/{settings.GITHUB_REPO}，自动发布等待 {settings.WAIT_TIME} 秒")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
