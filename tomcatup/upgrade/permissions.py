"""
权限与属主规范化

- 新安装目录的配置子目录补齐组读/写/执行位（只添加缺少的位）
- 新安装目录整棵树递归修改为配置的数值用户/组
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..utils import get_stage_logger, LogStage

permission_logger = get_stage_logger(LogStage.PERMISSION)
owner_logger = get_stage_logger(LogStage.OWNER)

GROUP_RWX = stat.S_IRGRP | stat.S_IWGRP | stat.S_IXGRP


@dataclass
class OwnershipStats:
    """递归修改属主的统计"""
    changed: int = 0
    failed: int = 0


def ensure_group_rwx(path: Union[str, Path]) -> int:
    """为路径补齐组读/写/执行位

    Returns:
        int: 处理后的权限位

    Raises:
        OSError: 路径不存在或无法修改
    """
    mode = stat.S_IMODE(os.stat(path).st_mode)
    new_mode = mode | GROUP_RWX
    if new_mode != mode:
        os.chmod(path, new_mode)
        permission_logger.info(f"{path}: {oct(mode)} -> {oct(new_mode)}")
    else:
        permission_logger.debug(f"{path} 已具备组读写执行权限")
    return new_mode


def change_owner(root: Union[str, Path], uid: int, gid: int, recursive: bool = True) -> OwnershipStats:
    """修改属主

    单个条目修改失败只计数（详细模式下显示），不终止；
    无法遍历目录树时抛出 OSError。
    """
    root = Path(root)
    stats = OwnershipStats()

    if not recursive:
        os.chown(root, uid, gid)
        stats.changed = 1
        return stats

    def _walk_error(err: OSError) -> None:
        raise err

    def _chown(path: str) -> None:
        count = stats.changed + stats.failed + 1
        try:
            os.chown(path, uid, gid, follow_symlinks=False)
            stats.changed += 1
            owner_logger.debug(f"{count}. {path}")
        except OSError as e:
            stats.failed += 1
            owner_logger.debug(f"{count}. {path} 失败: {e.strerror or e}")

    _chown(str(root))
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        for name in dirnames + filenames:
            _chown(os.path.join(dirpath, name))

    return stats
