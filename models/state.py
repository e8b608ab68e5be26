"""
会话状态模型定义
"""
from enum import Enum


class SubmissionKind(str, Enum):
    """待发布内容类型（创建后不可变）"""
    TEXT = 'text'
    PHOTO = 'photo'
    VIDEO = 'video'


class SessionState(str, Enum):
    """用户会话整体状态，由待发布内容与编辑状态推导"""
    IDLE = 'idle'              # 无待处理内容
    SUBMITTING = 'submitting'  # 有待发布内容
    EDITING = 'editing'        # 正在编辑已发布动态
    CONFLICT = 'conflict'      # 同时存在待发布内容和编辑状态（编辑优先）


# 回调数据前缀
CALLBACK = {
    'LABEL': 'label:',            # 标签选择
    'SET_DEFAULT': 'setdefault:', # 设置默认标签
    'DELETE': 'delete:',          # 删除确认/取消
}

# 标签键盘中的伪标签
LABEL_REFRESH = 'refresh'
LABEL_CANCEL = 'cancel'
