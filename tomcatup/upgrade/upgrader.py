"""
升级器主类

包装升级管道，把各组件抛出的错误统一转换为 UpgradeResult，
由调用者（命令行）决定记录日志后终止还是直接退出。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.schema import UpgradeConfig
from .downloader import Downloader
from .migrator import MigrationResult
from .upgrade_context import UpgradeError
from .upgrade_pipeline import UpgradePipeline


@dataclass
class UpgradeResult:
    """升级结果"""
    success: bool
    version: Optional[str] = None
    install_dir: Optional[Path] = None
    archive_path: Optional[Path] = None
    downloaded: bool = False
    migrations: List[MigrationResult] = field(default_factory=list)
    elapsed: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    exception: Optional[BaseException] = None


class Upgrader:
    """就地升级器"""

    def __init__(self, config: UpgradeConfig, downloader: Optional[Downloader] = None):
        self.config = config
        self.pipeline = UpgradePipeline(config, downloader=downloader)

    def upgrade(self, patch: int) -> UpgradeResult:
        """升级到 <major>.<minor>.<patch>

        Returns:
            UpgradeResult: 升级结果；失败时 success 为 False 并携带错误
        """
        try:
            context = self.pipeline.execute(patch)
        except (UpgradeError, OSError) as e:
            return UpgradeResult(
                success=False,
                error=str(e),
                error_type=type(e).__name__,
                exception=e,
            )

        return UpgradeResult(
            success=True,
            version=context.release.version if context.release else None,
            install_dir=context.install_dir,
            archive_path=context.archive_path,
            downloaded=context.downloaded,
            migrations=list(context.migrations),
            elapsed=context.stats['end_time'] - context.stats['start_time'],
        )

    def get_pipeline(self) -> UpgradePipeline:
        """获取升级管道，用于自定义流程"""
        return self.pipeline
