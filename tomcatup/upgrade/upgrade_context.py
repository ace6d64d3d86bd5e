"""
升级上下文模块

定义升级过程中各步骤共享的数据结构和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..config.schema import UpgradeConfig
from ..utils.paths import join_root

if TYPE_CHECKING:
    from .downloader import RemoteArtifact
    from .migrator import MigrationResult
    from .release import ReleaseURLs, ReleaseVersion


class UpgradeError(Exception):
    """升级错误基类，任何子类都会终止整个升级流程"""
    pass


class TransferError(UpgradeError):
    """下载失败：服务器返回非成功状态、网络异常或下载后校验和不匹配"""
    pass


class FormatError(UpgradeError):
    """归档格式错误：gzip 头无效、压缩流损坏或 tar 内容为空"""
    pass


class NotRegularFileError(UpgradeError):
    """期望的普通文件不存在，或是目录/特殊文件"""

    def __init__(self, path: Path, reason: str = "不是有效的普通文件"):
        super().__init__(f"{path} {reason}")
        self.path = Path(path)


class IntegrityError(UpgradeError):
    """复制后的文件摘要与源文件不一致"""

    def __init__(self, message: str, result: Optional['MigrationResult'] = None,
                 completed: Optional[List['MigrationResult']] = None):
        super().__init__(message)
        self.result = result
        self.completed = completed or []


@dataclass
class UpgradeContext:
    """升级上下文，在各步骤之间传递显式的值

    只有解析出的版本、路径与摘要在步骤之间流动，没有其他共享状态。
    """
    config: UpgradeConfig
    patch: int

    # 升级过程中产生的数据
    release: Optional['ReleaseVersion'] = None
    urls: Optional['ReleaseURLs'] = None
    expected_digest: Optional[str] = None
    artifact: Optional['RemoteArtifact'] = None
    downloaded: bool = False
    archive_path: Optional[Path] = None
    tar_path: Optional[Path] = None
    root_dirname: Optional[str] = None
    migrations: List['MigrationResult'] = field(default_factory=list)
    links: List[Path] = field(default_factory=list)

    stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'entries_extracted': 0,
        'entries_skipped': 0,
        'bytes_extracted': 0,
        'owner_changed': 0,
        'owner_failed': 0,
    })

    @property
    def work_dir(self) -> Optional[Path]:
        """下载、解压与发布链接的根目录；None 表示当前工作目录"""
        return self.config.install.work_dir

    def in_work_dir(self, relative: str) -> Path:
        return join_root(self.work_dir, relative)

    @property
    def install_dir(self) -> Optional[Path]:
        """新安装目录（解压完成后才可用）"""
        if self.root_dirname is None:
            return None
        return self.in_work_dir(self.root_dirname)

    @property
    def existing_dir(self) -> Path:
        return self.config.install.dir
