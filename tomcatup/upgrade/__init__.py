"""升级服务模块

提供校验下载、归档解压、配置迁移与收尾规范化的核心功能。
"""

from .checksum import HashCalculator, digest, digest_chunks, digest_file, compare
from .release import ReleaseVersion, ReleaseURLs, build_release_urls, DIST_BASE_URL
from .downloader import Downloader, LocalArchiveFile, RemoteArtifact, parse_checksum
from .extractor import ArchiveExtractor, ArchiveEntry, exclusion_key
from .migrator import ConfigMigrator, MigrationResult
from .upgrade_context import (
    UpgradeContext,
    UpgradeError,
    TransferError,
    FormatError,
    NotRegularFileError,
    IntegrityError,
)
from .upgrade_pipeline import UpgradePipeline
from .upgrader import Upgrader, UpgradeResult

__all__ = [
    # 校验
    "HashCalculator",
    "digest",
    "digest_chunks",
    "digest_file",
    "compare",

    # 版本与地址
    "ReleaseVersion",
    "ReleaseURLs",
    "build_release_urls",
    "DIST_BASE_URL",

    # 下载
    "Downloader",
    "RemoteArtifact",
    "LocalArchiveFile",
    "parse_checksum",

    # 解压
    "ArchiveExtractor",
    "ArchiveEntry",
    "exclusion_key",

    # 迁移
    "ConfigMigrator",
    "MigrationResult",

    # 流程
    "UpgradeContext",
    "UpgradePipeline",
    "Upgrader",
    "UpgradeResult",

    # 异常
    "UpgradeError",
    "TransferError",
    "FormatError",
    "NotRegularFileError",
    "IntegrityError",
]
