"""
会话存储

按用户 ID 保存：
- 待发布内容（PendingSubmission，最多一条）
- 编辑状态（PendingEdit，最多一条）
- 默认标签

所有操作在同一把读写锁下完成，不做任何 I/O。对外返回的都是副本，
修改必须通过本模块的方法完成，保证"检查再修改"是原子的。
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from models.records import PendingEdit, PendingSubmission
from models.state import SessionState
from utils.rw_lock import RWLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSession:
    """某一时刻某个用户的会话快照"""
    submission: Optional[PendingSubmission] = None
    edit: Optional[PendingEdit] = None

    @property
    def state(self) -> SessionState:
        if self.submission is not None and self.edit is not None:
            return SessionState.CONFLICT
        if self.edit is not None:
            return SessionState.EDITING
        if self.submission is not None:
            return SessionState.SUBMITTING
        return SessionState.IDLE


class SessionStore:
    def __init__(self):
        self._lock = RWLock()
        self._submissions: Dict[int, PendingSubmission] = {}
        self._edits: Dict[int, PendingEdit] = {}
        self._default_labels: Dict[int, str] = {}

    # -------------------------------------------------------------------------
    # 会话快照
    # -------------------------------------------------------------------------
    def session(self, user_id: int) -> UserSession:
        with self._lock.read():
            return UserSession(
                submission=copy.deepcopy(self._submissions.get(user_id)),
                edit=copy.deepcopy(self._edits.get(user_id)),
            )

    # -------------------------------------------------------------------------
    # 待发布内容
    # -------------------------------------------------------------------------
    def get_submission(self, user_id: int) -> Optional[PendingSubmission]:
        with self._lock.read():
            return copy.deepcopy(self._submissions.get(user_id))

    def put_submission(self, user_id: int, submission: PendingSubmission) -> None:
        with self._lock.write():
            self._submissions[user_id] = copy.deepcopy(submission)

    def add_submission(self, user_id: int, submission: PendingSubmission) -> Optional[PendingSubmission]:
        """
        仅当用户没有待发布内容时保存

        Returns:
            已存在的待发布内容（未保存新内容）；保存成功返回 None
        """
        with self._lock.write():
            existing = self._submissions.get(user_id)
            if existing is not None:
                return copy.deepcopy(existing)
            self._submissions[user_id] = copy.deepcopy(submission)
            return None

    def remove_submission(self, user_id: int) -> None:
        with self._lock.write():
            self._submissions.pop(user_id, None)

    def take_submission(self, user_id: int) -> Optional[PendingSubmission]:
        """原子地取出并删除待发布内容；不存在时返回 None"""
        with self._lock.write():
            return self._submissions.pop(user_id, None)

    def update_caption(self, user_id: int, caption: str) -> Optional[PendingSubmission]:
        with self._lock.write():
            submission = self._submissions.get(user_id)
            if submission is None:
                return None
            submission.caption = caption
            return copy.deepcopy(submission)

    def set_submission_labels(self, user_id: int, labels: List[str]) -> Optional[PendingSubmission]:
        # 覆盖而不是合并
        with self._lock.write():
            submission = self._submissions.get(user_id)
            if submission is None:
                return None
            submission.labels = list(labels)
            return copy.deepcopy(submission)

    # -------------------------------------------------------------------------
    # 编辑状态
    # -------------------------------------------------------------------------
    def get_edit(self, user_id: int) -> Optional[PendingEdit]:
        with self._lock.read():
            return copy.deepcopy(self._edits.get(user_id))

    def put_edit(self, user_id: int, edit: PendingEdit) -> None:
        with self._lock.write():
            self._edits[user_id] = copy.deepcopy(edit)

    def remove_edit(self, user_id: int) -> bool:
        with self._lock.write():
            return self._edits.pop(user_id, None) is not None

    def take_edit(self, user_id: int) -> Optional[PendingEdit]:
        with self._lock.write():
            return self._edits.pop(user_id, None)

    def set_edit_labels(self, user_id: int, labels: List[str]) -> Optional[PendingEdit]:
        with self._lock.write():
            edit = self._edits.get(user_id)
            if edit is None:
                return None
            edit.selected_labels = list(labels)
            return copy.deepcopy(edit)

    def is_editing(self, user_id: int) -> bool:
        with self._lock.read():
            return user_id in self._edits

    # -------------------------------------------------------------------------
    # 默认标签
    # -------------------------------------------------------------------------
    def get_default_label(self, user_id: int) -> Optional[str]:
        with self._lock.read():
            return self._default_labels.get(user_id)

    def set_default_label(self, user_id: int, label: str) -> None:
        with self._lock.write():
            self._default_labels[user_id] = label
        logger.info(f"用户 {user_id} 默认标签已设置为: {label}")
