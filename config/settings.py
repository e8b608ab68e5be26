"""
配置文件读取和变量定义模块
"""
import os
import configparser
import logging

logger = logging.getLogger(__name__)

# 项目根目录
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.path.join(BASE_DIR, 'config.ini')

# 读取配置文件
config = configparser.ConfigParser()

if os.path.exists(CONFIG_PATH):
    config.read(CONFIG_PATH, encoding='utf-8')
    logger.info(f"已加载配置文件: {CONFIG_PATH}")
else:
    logger.warning(f"⚠️ 配置文件 {CONFIG_PATH} 不存在，将仅使用环境变量")


def get_config(section, key, fallback=None):
    """安全获取配置值"""
    try:
        return config.get(section, key)
    except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
        return fallback


def get_config_int(section, key, fallback=0):
    """安全获取整数配置值"""
    try:
        return config.getint(section, key)
    except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
        return fallback


def get_env_or_config(env_key, section, config_key, fallback=None):
    """
    优先从环境变量获取配置，如果环境变量不存在则从配置文件获取

    - 环境变量存在（即使为空字符串）时使用环境变量
    - 否则读取配置文件，仍不存在则返回 fallback

    Args:
        env_key: 环境变量名
        section: 配置文件节名
        config_key: 配置文件键名
        fallback: 默认值
    """
    if env_key in os.environ:
        value = os.environ[env_key]
        logger.debug(f"使用环境变量 {env_key}")
        return value
    return get_config(section, config_key, fallback)


def get_env_or_config_int(env_key, section, config_key, fallback=0):
    """整数版本：环境变量值无效时回退到配置文件/默认值"""
    raw = get_env_or_config(env_key, section, config_key)
    if raw is None or str(raw).strip() == '':
        return fallback
    try:
        return int(str(raw).strip())
    except (ValueError, TypeError):
        logger.warning(f"{env_key} 配置无效，无法转换为整数: {raw}，使用默认值 {fallback}")
        return fallback


# ============================================
# Telegram 机器人配置
# ============================================
TOKEN = get_env_or_config('TOKEN', 'BOT', 'TOKEN')

# OWNER_ID 需要转换为整数类型；机器人只响应该用户
_owner_id_str = get_env_or_config('OWNER_ID', 'BOT', 'OWNER_ID')
try:
    OWNER_ID = int(_owner_id_str) if _owner_id_str else None
except (ValueError, TypeError):
    OWNER_ID = None
    logger.warning(f"OWNER_ID 配置无效，无法转换为整数: {_owner_id_str}")

NET_TIMEOUT = get_env_or_config_int('NET_TIMEOUT', 'BOT', 'NET_TIMEOUT', 120)   # 网络请求超时时间（秒）
LOG_LEVEL = (get_env_or_config('LOG_LEVEL', 'BOT', 'LOG_LEVEL', fallback='INFO') or 'INFO').strip().upper()

# ============================================
# GitHub 配置（Issue 作为动态存储，文件仓库存放媒体）
# ============================================
GITHUB_TOKEN = get_env_or_config('GITHUB_TOKEN', 'GITHUB', 'TOKEN')
GITHUB_USERNAME = get_env_or_config('GITHUB_USERNAME', 'GITHUB', 'USERNAME')
GITHUB_REPO = get_env_or_config('GITHUB_REPO', 'GITHUB', 'REPO', fallback='moments') or 'moments'
GITHUB_FILE_REPO = get_env_or_config('GITHUB_FILE_REPO', 'GITHUB', 'FILE_REPO', fallback='moments-files') or 'moments-files'
GITHUB_USER_AGENT = get_env_or_config('GITHUB_USER_AGENT', 'GITHUB', 'USER_AGENT', fallback='moments-bot/1.0') or 'moments-bot/1.0'
GITHUB_API_BASE = get_env_or_config('GITHUB_API_BASE', 'GITHUB', 'API_BASE', fallback='https://api.github.com') or 'https://api.github.com'

# ============================================
# 动态发布配置
# ============================================
WAIT_TIME = get_env_or_config_int('WAIT_TIME', 'MOMENTS', 'WAIT_TIME', 5 * 60)  # 媒体自动发布等待时间（秒）
LABEL_CACHE_TTL = get_env_or_config_int('LABEL_CACHE_TTL', 'MOMENTS', 'LABEL_CACHE_TTL', 30 * 60)  # 标签缓存时间（秒）
MAX_FILE_SIZE = get_env_or_config_int('MAX_FILE_SIZE', 'MOMENTS', 'MAX_FILE_SIZE', 50 * 1024 * 1024)  # 50MB
MAX_CONTENT_LENGTH = get_env_or_config_int('MAX_CONTENT_LENGTH', 'MOMENTS', 'MAX_CONTENT_LENGTH', 5000)
RECENT_LIMIT = get_env_or_config_int('RECENT_LIMIT', 'MOMENTS', 'RECENT_LIMIT', 10)
# 已发布动态缓存容量，0 表示不限制
RECORD_CACHE_MAX = get_env_or_config_int('RECORD_CACHE_MAX', 'MOMENTS', 'RECORD_CACHE_MAX', 0)
DEFAULT_LABEL = get_env_or_config('DEFAULT_LABEL', 'MOMENTS', 'DEFAULT_LABEL', fallback='动态') or '动态'

# 远程标签获取失败且从未缓存过时使用
DEFAULT_LABELS = ('动态', '日常', '其他')


def validate_settings():
    """
    验证必要配置，缺失时抛出 ValueError

    放在启动流程中调用，而不是模块导入时，便于测试直接导入本模块。
    """
    missing = []
    if not TOKEN:
        missing.append('TOKEN')
    if OWNER_ID is None:
        missing.append('OWNER_ID')
    if not GITHUB_TOKEN:
        missing.append('GITHUB_TOKEN')
    if not GITHUB_USERNAME:
        missing.append('GITHUB_USERNAME')
    if missing:
        raise ValueError(f"❌ {', '.join(missing)} 未设置！请在环境变量或 config.ini 中设置")
