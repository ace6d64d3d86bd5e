"""
升级管道模块

按固定顺序执行升级步骤，任何一步失败都立即终止，不重试、不回滚。
"""

import time
from typing import List, Optional

from ..config.schema import UpgradeConfig
from ..utils.logging import debug, info, success, LogStage
from .downloader import Downloader
from .extractor import ArchiveExtractor
from .migrator import ConfigMigrator
from .steps import (
    UpgradeStep,
    InstallCheckStep,
    ReleaseResolutionStep,
    ChecksumStep,
    DownloadStep,
    DecompressStep,
    UnpackStep,
    MigrationStep,
    PermissionStep,
    OwnershipStep,
    LinkStep,
)
from .upgrade_context import UpgradeContext


class UpgradePipeline:
    """升级管道，负责协调升级步骤的执行"""

    def __init__(
        self,
        config: UpgradeConfig,
        downloader: Optional[Downloader] = None,
        migrator: Optional[ConfigMigrator] = None,
    ):
        self.config = config
        self.downloader = downloader or Downloader(
            timeout=config.download.timeout_sec,
            chunk_size=config.download.chunk_size,
            download_page=config.product.download_page,
        )
        self.extractor = ArchiveExtractor(
            exclude=config.extract.exclude,
            chunk_size=config.download.chunk_size,
        )
        self.migrator = migrator or ConfigMigrator(chunk_size=config.download.chunk_size)
        self._steps: List[UpgradeStep] = []

        self._init_default_steps()

    def _init_default_steps(self) -> None:
        self._steps = [
            InstallCheckStep(),
            ReleaseResolutionStep(),
            ChecksumStep(self.downloader),
            DownloadStep(self.downloader),
            DecompressStep(self.extractor),
            UnpackStep(self.extractor),
            MigrationStep(self.migrator),
            PermissionStep(),
            OwnershipStep(),
            LinkStep(),
        ]

    def add_step(self, step: UpgradeStep, position: Optional[int] = None) -> None:
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str) -> None:
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[UpgradeStep]:
        return self._steps.copy()

    def execute(self, patch: int) -> UpgradeContext:
        """执行升级管道

        Args:
            patch: 目标补丁版本号

        Returns:
            UpgradeContext: 升级上下文，包含所有中间结果

        Raises:
            UpgradeError: 任一步骤失败
            OSError: 本地读写失败
        """
        context = UpgradeContext(config=self.config, patch=patch)
        context.stats['start_time'] = time.time()

        product = self.config.product
        info(f"开始升级 {product.name} {product.series}.{patch}", stage=LogStage.UPGRADE)
        debug(
            f"安装目录={self.config.install.dir} 工作目录={self.config.install.work_dir or '.'} "
            f"排除={len(self.config.extract.exclude)} 迁移={len(self.config.migrate.files)}",
            stage=LogStage.UPGRADE,
        )

        current: Optional[UpgradeStep] = None
        try:
            for step in self._steps:
                current = step
                debug(f"执行步骤: {step.description}", stage=LogStage.UPGRADE)
                step.execute(context)
        except Exception as e:
            name = current.description if current else "未知步骤"
            # 最终的错误输出由调用者决定
            debug(f"{name}失败: {e}", stage=LogStage.UPGRADE)
            raise
        finally:
            context.stats['end_time'] = time.time()

        elapsed = context.stats['end_time'] - context.stats['start_time']
        success(f"升级完成: {context.install_dir} ({elapsed:.1f}秒)", stage=LogStage.DONE)
        return context
