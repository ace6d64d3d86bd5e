"""
配置迁移器

按给定顺序把配置文件从源目录复制到目标目录（覆盖已有文件），
复制后从目标文件重新计算摘要，与复制前的源摘要比对。
"""

import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..utils import get_stage_logger, LogStage
from . import checksum
from .upgrade_context import IntegrityError, NotRegularFileError

logger = get_stage_logger(LogStage.MIGRATE)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class MigrationResult:
    """单个配置文件的迁移结果"""
    name: str
    source: Path
    destination: Path
    success: bool
    source_digest: Optional[str] = None
    destination_digest: Optional[str] = None
    detail: Optional[str] = None


def ensure_regular_file(path: Path) -> None:
    """确认路径是存在的普通文件

    Raises:
        NotRegularFileError: 不存在、是目录或是特殊文件
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        raise NotRegularFileError(path, "不存在")
    if not stat.S_ISREG(st.st_mode):
        raise NotRegularFileError(path)


class ConfigMigrator:
    """配置文件迁移器"""

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size

    def copy_file(self, source: Path, destination: Path) -> None:
        """复制全部内容并落盘（flush + fsync）"""
        with open(source, "rb") as src, open(destination, "wb") as dst:
            shutil.copyfileobj(src, dst, self.chunk_size)
            dst.flush()
            os.fsync(dst.fileno())

    def migrate_file(self, name: str, source_dir: Path, destination_dir: Path) -> MigrationResult:
        """迁移单个文件，返回比对结果（摘要不一致时 success 为 False）

        Raises:
            NotRegularFileError: 源文件不是普通文件
            OSError: 读写失败
        """
        source = Path(source_dir) / name
        destination = Path(destination_dir) / name

        ensure_regular_file(source)
        source_digest = checksum.digest_file(source)

        self.copy_file(source, destination)

        destination_digest = checksum.digest_file(destination)
        if not checksum.compare(source_digest, destination_digest):
            return MigrationResult(
                name=name,
                source=source,
                destination=destination,
                success=False,
                source_digest=source_digest,
                destination_digest=destination_digest,
                detail=f"源摘要 {source_digest} 与目标摘要 {destination_digest} 不一致",
            )

        return MigrationResult(
            name=name,
            source=source,
            destination=destination,
            success=True,
            source_digest=source_digest,
            destination_digest=destination_digest,
        )

    def migrate(
        self,
        source_dir: Union[str, Path],
        destination_dir: Union[str, Path],
        names: Iterable[str],
    ) -> List[MigrationResult]:
        """按顺序迁移配置文件，遇到第一个失败立即终止

        Returns:
            List[MigrationResult]: 全部成功的迁移结果

        Raises:
            NotRegularFileError: 源文件缺失或不是普通文件
            IntegrityError: 复制后摘要不一致
        """
        results: List[MigrationResult] = []
        for name in names:
            destination = Path(destination_dir) / name
            logger.info(f"{destination} 将被替换")

            result = self.migrate_file(name, Path(source_dir), Path(destination_dir))
            if not result.success:
                raise IntegrityError(
                    f"{result.source} 没有正确复制，终止迁移: {result.detail}",
                    result=result,
                    completed=results,
                )

            results.append(result)
            logger.debug(f"{name} 完成 ({result.destination_digest})")

        logger.success(f"已迁移 {len(results)} 个配置文件")
        return results
