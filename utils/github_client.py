"""
GitHub 客户端（Issue 作为动态存储，contents API 上传媒体文件）
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from config import settings
from models.records import RemoteRecord

logger = logging.getLogger(__name__)


class GitHubAPIError(RuntimeError):
    """GitHub API 请求失败"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def build_headers(token: str, user_agent: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": user_agent,
    }


def media_markdown(urls: List[str]) -> str:
    """每个媒体链接生成一行 markdown 图片引用"""
    return "".join(f"\n![{url}]({url})" for url in urls)


class GitHubClient:
    def __init__(
        self,
        *,
        token: str,
        owner: str,
        repo: str,
        file_repo: str,
        user_agent: str = "moments-bot/1.0",
        api_base: str = "https://api.github.com",
        timeout_seconds: int = 120,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.file_repo = file_repo
        self.user_agent = user_agent
        self.api_base = api_base.rstrip('/')
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls) -> "GitHubClient":
        return cls(
            token=settings.GITHUB_TOKEN or "",
            owner=settings.GITHUB_USERNAME or "",
            repo=settings.GITHUB_REPO,
            file_repo=settings.GITHUB_FILE_REPO,
            user_agent=settings.GITHUB_USER_AGENT,
            api_base=settings.GITHUB_API_BASE,
            timeout_seconds=settings.NET_TIMEOUT,
        )

    def _repo_url(self, repo: Optional[str] = None) -> str:
        return f"{self.api_base}/repos/{self.owner}/{repo or self.repo}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        headers = build_headers(self.token, self.user_agent)
        async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
            async with session.request(method, url, json=json_body, params=params) as resp:
                text = await resp.text()
                if resp.status < 200 or resp.status >= 300:
                    raise GitHubAPIError(
                        f"GitHub API 请求失败，状态码: {resp.status}, 响应: {text[:500]}",
                        status=resp.status,
                    )
                if not text:
                    return None
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise GitHubAPIError(f"GitHub API 响应非 JSON: {text[:500]}", status=resp.status) from e

    # -------------------------------------------------------------------------
    # 标签
    # -------------------------------------------------------------------------
    async def get_labels(self) -> List[str]:
        data = await self._request("GET", f"{self._repo_url()}/labels", params={"per_page": 100})
        return [str(item.get("name")) for item in data or [] if item.get("name")]

    # -------------------------------------------------------------------------
    # Issue
    # -------------------------------------------------------------------------
    async def create_record(self, title: str, body: str, labels: List[str]) -> RemoteRecord:
        data = await self._request(
            "POST",
            f"{self._repo_url()}/issues",
            json_body={"title": title, "body": body, "labels": list(labels)},
        )
        record = RemoteRecord.from_dict(data or {})
        logger.info(f"已创建 Issue #{record.number}，标签: {labels}")
        return record

    async def update_record(self, number: int, body: str, labels: List[str]) -> RemoteRecord:
        data = await self._request(
            "PATCH",
            f"{self._repo_url()}/issues/{int(number)}",
            json_body={"body": body, "labels": list(labels)},
        )
        logger.info(f"已更新 Issue #{number}")
        return RemoteRecord.from_dict(data or {})

    async def close_record(self, number: int) -> None:
        # 关闭而不是物理删除
        await self._request(
            "PATCH",
            f"{self._repo_url()}/issues/{int(number)}",
            json_body={"state": "closed"},
        )
        logger.info(f"已关闭 Issue #{number}")

    async def get_record(self, number: int) -> RemoteRecord:
        data = await self._request("GET", f"{self._repo_url()}/issues/{int(number)}")
        return RemoteRecord.from_dict(data or {})

    async def list_recent_open_records(self, limit: int) -> List[RemoteRecord]:
        data = await self._request(
            "GET",
            f"{self._repo_url()}/issues",
            params={"state": "open", "per_page": int(limit), "sort": "created", "direction": "desc"},
        )
        # issues 接口也会返回 PR，过滤掉
        return [RemoteRecord.from_dict(item) for item in data or [] if "pull_request" not in item]

    # -------------------------------------------------------------------------
    # 文件
    # -------------------------------------------------------------------------
    async def upload_file(self, name: str, content: bytes, message: str, *, timestamp: Optional[int] = None) -> str:
        """
        上传文件到文件仓库的 moments/ 目录

        Returns:
            str: 文件下载链接
        """
        ts = int(timestamp if timestamp is not None else time.time())
        url = f"{self._repo_url(self.file_repo)}/contents/moments/{ts}_{name}"
        data = await self._request(
            "PUT",
            url,
            json_body={"message": message, "content": base64.b64encode(content).decode("ascii")},
        )
        download_url = ((data or {}).get("content") or {}).get("download_url")
        if not download_url:
            raise GitHubAPIError(f"文件 {name} 上传失败")
        logger.info(f"已上传文件 {name}")
        return str(download_url)
