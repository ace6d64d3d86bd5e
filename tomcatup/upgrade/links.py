"""
符号链接发布

- 附加链接：在新安装目录内创建指向外部路径的链接；目标位置已存在时跳过并显示原因
- 发布链接：固定的链接名指向新安装目录；已存在的同名条目先改名为 "<name>~" 再创建
"""

import os
from pathlib import Path
from typing import Optional, Union

from ..utils import get_stage_logger, LogStage

logger = get_stage_logger(LogStage.LINK)

BACKUP_SUFFIX = "~"


def _exists(path: Path) -> bool:
    # 悬空链接 exists() 为 False，但仍占用名字
    return path.exists() or path.is_symlink()


def create_link(target: Union[str, Path], link: Union[str, Path]) -> bool:
    """创建符号链接，失败时显示原因并跳过

    Returns:
        bool: 是否创建成功
    """
    link = Path(link)
    try:
        os.symlink(target, link)
    except OSError as e:
        logger.warning(f"链接 {link} -> {target} 已跳过: {e.strerror or e}")
        return False

    logger.info(f"链接 {link} -> {target}")
    return True


def rotate_link(target: Union[str, Path], link: Union[str, Path]) -> Optional[Path]:
    """把固定链接名切换到新目标

    已存在的同名条目改名为 "<link>~"（覆盖旧的备份），不会被删除。

    Returns:
        Optional[Path]: 备份路径；原先不存在时返回 None

    Raises:
        OSError: 改名或创建链接失败
    """
    link = Path(link)
    backup: Optional[Path] = None

    if _exists(link):
        backup = link.with_name(link.name + BACKUP_SUFFIX)
        if backup.is_dir() and not backup.is_symlink():
            raise OSError(f"备份位置 {backup} 是目录，无法替换")
        os.replace(link, backup)
        logger.info(f"已将 {link} 改名为 {backup}")

    os.symlink(target, link)
    logger.success(f"链接 {link} -> {target}")
    return backup
