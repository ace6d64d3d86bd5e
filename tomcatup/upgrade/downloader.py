"""
下载器

先用 HEAD 请求报告远程归档的大小与修改时间，再流式下载到本地文件，
下载完成后从写入的文件重新计算摘要，与发布的校验和比对。
本地已有同名且摘要一致的文件时跳过整个下载。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import requests

from ..utils import format_size, get_stage_logger, LogStage
from . import checksum
from .upgrade_context import TransferError

logger = get_stage_logger(LogStage.DOWNLOAD)


@dataclass(frozen=True)
class RemoteArtifact:
    """远程归档的元信息"""
    url: str
    size: Optional[int]
    last_modified: Optional[str]
    expected_digest: str


@dataclass(frozen=True)
class LocalArchiveFile:
    """本地归档文件：下载得到或事先已存在，重新运行时被覆盖而不是删除"""
    path: Path
    digest: str

    @classmethod
    def load(cls, path: Union[str, Path]) -> Optional["LocalArchiveFile"]:
        """读取并计算本地文件摘要；文件不存在时返回 None"""
        path = Path(path)
        if not path.is_file():
            return None
        return cls(path=path, digest=checksum.digest_file(path))


def parse_checksum(body: str) -> str:
    """解析校验文件内容

    支持 "<hex> *<filename>" 与 "<hex>  <filename>" 两种常见格式：
    取第一个 * 之前的部分并去除空白；仍含空白时取第一个字段。
    """
    token = body.split("*", 1)[0].strip()
    fields = token.split()
    if not fields:
        raise TransferError("校验文件为空或格式无法识别")
    return fields[0].lower()


class Downloader:
    """HTTP 下载器"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
        chunk_size: int = 64 * 1024,
        download_page: Optional[str] = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.download_page = download_page

    def _check_status(self, response: requests.Response, url: str) -> None:
        """非 2xx 状态立即失败，状态文本原样展示给运维"""
        if 200 <= response.status_code < 300:
            return
        status = f"{response.status_code} {response.reason or ''}".strip()
        message = f"{status}: {url}"
        if self.download_page:
            message += f". 请访问 {self.download_page} 确认当前可用版本"
        raise TransferError(message)

    def probe(self, url: str) -> Tuple[Optional[int], Optional[str]]:
        """获取远程文件的大小与 Last-Modified（不下载内容）"""
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise TransferError(f"请求失败 {url}: {e}") from e

        self._check_status(response, url)

        length = response.headers.get("Content-Length")
        size = int(length) if length and length.isdigit() else None
        return size, response.headers.get("Last-Modified") or None

    def fetch_checksum(self, url: str) -> str:
        """下载并解析配套的校验文件"""
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransferError(f"请求失败 {url}: {e}") from e

        self._check_status(response, url)
        value = parse_checksum(response.text)
        logger.debug(f"发布的校验和: {value}")
        return value

    def download_if_needed(
        self,
        url: str,
        expected_digest: str,
        destination: Union[str, Path],
    ) -> Optional[RemoteArtifact]:
        """本地文件与发布的校验和一致时跳过下载

        Returns:
            RemoteArtifact: 实际下载时返回远程元信息；跳过时返回 None
        """
        destination = Path(destination)
        local = LocalArchiveFile.load(destination)
        if local is not None and checksum.compare(local.digest, expected_digest):
            logger.info(f"本地文件 {destination} 与发布的校验和一致，跳过下载")
            return None

        if local is not None:
            logger.debug(f"本地文件摘要 {local.digest} 与发布的不一致，重新下载")
        return self.fetch(url, expected_digest, destination)

    def fetch(
        self,
        url: str,
        expected_digest: str,
        destination: Union[str, Path],
    ) -> RemoteArtifact:
        """下载远程文件并校验

        Raises:
            TransferError: 状态码非成功、网络中断或下载后校验和不匹配
            OSError: 本地文件写入失败
        """
        destination = Path(destination)
        size, last_modified = self.probe(url)

        summary = f"下载文件: {destination.name}, {format_size(size if size is not None else -1)}"
        if last_modified:
            summary += f", {last_modified}"
        logger.info(summary)

        written = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                self._check_status(response, url)
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            raise TransferError(f"下载中断 {url}: {e}") from e

        logger.debug(f"已写入 {written} 字节到 {destination}")

        # 从落盘的文件重新计算，能发现写入过程中的静默截断
        actual = checksum.digest_file(destination)
        if not checksum.compare(actual, expected_digest):
            raise TransferError(
                f"下载失败：{destination.name} 的校验和与发布的不一致\n"
                f"期望: {expected_digest!r}\n"
                f"实际: {actual!r}"
            )

        logger.success("下载完成")
        return RemoteArtifact(
            url=url,
            size=size,
            last_modified=last_modified,
            expected_digest=expected_digest,
        )
