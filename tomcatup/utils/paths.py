"""
路径工具

提供路径处理相关的工具函数。
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(path)


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在"""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def join_root(root: Union[str, Path, None], relative: Union[str, Path]) -> Path:
    """把相对路径拼接到根目录下

    根目录为空（None 或 ""）时表示当前工作目录，返回的仍是相对路径。
    """
    if not root:
        return Path(relative)
    return Path(root) / relative


def is_safe_member_name(name: str) -> bool:
    """检查归档条目名是否安全（不含绝对路径与上级目录引用）

    Args:
        name: 归档内的相对路径（使用正斜杠）

    Returns:
        bool: 是否安全
    """
    if not name or name.startswith("/"):
        return False
    return ".." not in PurePosixPath(name).parts


def format_size(size_bytes: int) -> str:
    """格式化文件大小（十进制单位）

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串，如 "9.7 MB"
    """
    if size_bytes < 0:
        return "未知大小"
    if size_bytes < 1000:
        return f"{size_bytes} B"

    units = ["kB", "MB", "GB", "TB"]
    size = float(size_bytes)
    unit = "B"
    for unit in units:
        size /= 1000.0
        if size < 1000.0:
            break

    return f"{size:.1f} {unit}"
