"""
归档解压器

两个阶段，均为流式处理，内存占用与归档大小无关：

- decompress: 把单成员 gzip 流解压为中间 tar 文件（保留在磁盘上便于排查）
- unpack: 逐条读取 tar 条目，按排除键跳过不需要的内容，其余写入目标目录
"""

import gzip
import os
import shutil
import struct
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterable, List, Optional, Tuple, Union

from ..utils import get_stage_logger, is_safe_member_name, join_root, LogStage
from .upgrade_context import FormatError

GZIP_MAGIC = b"\x1f\x8b"
GZIP_METHOD_DEFLATE = 8

# gzip 头标志位（RFC 1952）
FTEXT = 0x01
FHCRC = 0x02
FEXTRA = 0x04
FNAME = 0x08
FCOMMENT = 0x10

CHUNK_SIZE = 64 * 1024

decompress_logger = get_stage_logger(LogStage.DECOMPRESS)
unpack_logger = get_stage_logger(LogStage.UNPACK)


class EntryKind:
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


@dataclass(frozen=True)
class ArchiveEntry:
    """tar 归档中的一个条目"""
    name: str
    kind: str
    mode: int
    size: int = 0

    @classmethod
    def from_tarinfo(cls, member: tarfile.TarInfo) -> "ArchiveEntry":
        if member.isdir():
            kind = EntryKind.DIRECTORY
        elif member.isreg():
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return cls(
            name=member.name,
            kind=kind,
            mode=member.mode & 0o7777,
            size=member.size if member.isreg() else 0,
        )

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(part for part in self.name.split("/") if part)

    @property
    def exclusion_key(self) -> Optional[str]:
        return exclusion_key(self.name)


@dataclass
class UnpackStats:
    extracted: int = 0
    skipped: int = 0
    bytes_written: int = 0


def exclusion_key(name: str) -> Optional[str]:
    """计算条目的排除键

    - 三段及以上: 第 2、3 段，如 apache-tomcat-8.5.40/webapps/docs/x -> webapps/docs
    - 两段: 第 2 段，如 apache-tomcat-8.5.40/LICENSE -> LICENSE
    - 一段（归档根目录本身）: None，根目录永远不会被排除
    """
    segments = [part for part in name.split("/") if part]
    if len(segments) >= 3:
        return f"{segments[1]}/{segments[2]}"
    if len(segments) == 2:
        return segments[1]
    return None


def is_excluded(name: str, exclude: Iterable[str]) -> bool:
    key = exclusion_key(name)
    if key is None:
        return False
    return key in exclude


def read_gzip_member_name(stream: BinaryIO) -> Optional[str]:
    """解析 gzip 头，返回其中记录的原始文件名（FNAME）

    标准库 gzip 读取时会丢弃 FNAME 字段，这里按 RFC 1952 直接读取头部。

    Raises:
        FormatError: 不是有效的 gzip 头
    """
    header = stream.read(10)
    if len(header) < 10:
        raise FormatError("gzip 头不完整")

    magic, method, flags = struct.unpack("<2sBB", header[:4])
    if magic != GZIP_MAGIC:
        raise FormatError("不是 gzip 格式（魔数不匹配）")
    if method != GZIP_METHOD_DEFLATE:
        raise FormatError(f"不支持的 gzip 压缩方法: {method}")

    if flags & FEXTRA:
        extra_len_bytes = stream.read(2)
        if len(extra_len_bytes) != 2:
            raise FormatError("gzip 扩展字段损坏")
        extra_len = struct.unpack("<H", extra_len_bytes)[0]
        if len(stream.read(extra_len)) != extra_len:
            raise FormatError("gzip 扩展字段损坏")

    if not flags & FNAME:
        return None

    raw = bytearray()
    while True:
        byte = stream.read(1)
        if not byte:
            raise FormatError("gzip 文件名字段未结束")
        if byte == b"\x00":
            break
        raw.extend(byte)

    # FNAME 按规范是 ISO-8859-1；只取最后一段，防止头部携带路径
    name = PurePosixPath(raw.decode("latin-1").replace("\\", "/")).name
    return name or None


def fallback_name(source: Path) -> str:
    return source.stem if source.suffix else f"{source.name}.out"


def intermediate_name(source: Path, header_name: Optional[str]) -> str:
    """中间文件名：优先 gzip 头中的名字，否则去掉源文件最后一个扩展名

    头部名字仍以 .gz 结尾或与源文件同名时不采用，中间文件不能覆盖源归档。
    """
    if header_name and not header_name.lower().endswith(".gz") and header_name != source.name:
        return header_name
    return fallback_name(source)


class ArchiveExtractor:
    """tar.gz 解压器"""

    def __init__(self, exclude: Iterable[str] = (), chunk_size: int = CHUNK_SIZE):
        self.exclude = tuple(exclude)
        self.chunk_size = chunk_size
        self.stats = UnpackStats()

    def decompress(self, source: Union[str, Path], target_dir: Union[str, Path, None] = None) -> Path:
        """把 gzip 流解压为中间文件

        Args:
            source: .tar.gz 文件路径
            target_dir: 中间文件所在目录；为空时与源文件同目录

        Returns:
            Path: 中间 tar 文件路径

        Raises:
            FormatError: gzip 头无效或压缩流损坏
        """
        source = Path(source)
        with open(source, "rb") as raw:
            header_name = read_gzip_member_name(raw)

        name = intermediate_name(source, header_name)
        if target_dir is None:
            target = source.with_name(name)
        else:
            target = join_root(target_dir, name)

        if target.resolve() == source.resolve():
            target = target.with_name(fallback_name(source))

        decompress_logger.info(f"解压 {source.name} -> {target}")

        try:
            with gzip.open(source, "rb") as gz, open(target, "wb") as out:
                shutil.copyfileobj(gz, out, self.chunk_size)
        except (gzip.BadGzipFile, EOFError, zlib.error) as e:
            raise FormatError(f"gzip 数据损坏 {source}: {e}") from e

        decompress_logger.success(f"已生成 {target}")
        return target

    def unpack(self, source: Union[str, Path], destination_root: Union[str, Path, None] = "") -> str:
        """解开 tar 文件到目标目录

        Args:
            source: 中间 tar 文件
            destination_root: 目标根目录；为空表示当前工作目录

        Returns:
            str: 归档的顶层目录名（如 apache-tomcat-8.5.40）

        Raises:
            FormatError: tar 内容无效或为空
            OSError: 任何条目写入失败（整个流程随即终止）
        """
        source = Path(source)
        self.stats = UnpackStats()
        root_name: Optional[str] = None
        directories: List[Tuple[Path, int]] = []
        count = 0

        unpack_logger.info(f"解开 {source.name}")

        try:
            # 流模式只顺序读取，不会为整个归档建立成员索引
            with tarfile.open(source, mode="r|") as tar:
                for member in tar:
                    count += 1
                    entry = ArchiveEntry.from_tarinfo(member)
                    unpack_logger.debug(f"{count}. {entry.name}")

                    if root_name is None and entry.segments:
                        root_name = entry.segments[0]

                    if not is_safe_member_name(entry.name):
                        unpack_logger.warning(f"{entry.name} 路径不安全，已跳过")
                        self.stats.skipped += 1
                        continue

                    if is_excluded(entry.name, self.exclude):
                        unpack_logger.debug(f"{entry.name} 已跳过")
                        self.stats.skipped += 1
                        continue

                    target = join_root(destination_root, entry.name)
                    if entry.kind == EntryKind.DIRECTORY:
                        target.mkdir(parents=True, exist_ok=True)
                        directories.append((target, entry.mode))
                    elif entry.kind == EntryKind.FILE:
                        fileobj = tar.extractfile(member)
                        if fileobj is None:
                            raise FormatError(f"无法读取条目内容: {entry.name}")
                        with fileobj:
                            self._write_file(target, entry.mode, fileobj)
                        self.stats.bytes_written += entry.size
                    else:
                        unpack_logger.warning(f"{entry.name} 不是普通文件或目录，已跳过")
                        self.stats.skipped += 1
                        continue

                    self.stats.extracted += 1
        except tarfile.ReadError as e:
            raise FormatError(f"tar 数据无效 {source}: {e}") from e

        # 目录权限在全部条目写入之后由深到浅设置
        for path, mode in sorted(directories, key=lambda item: len(item[0].parts), reverse=True):
            os.chmod(path, mode)

        if root_name is None:
            raise FormatError(f"归档为空: {source}")

        unpack_logger.success(
            f"解开完成：写入 {self.stats.extracted} 项，跳过 {self.stats.skipped} 项"
        )
        return root_name

    def _write_file(self, target: Path, mode: int, fileobj: BinaryIO) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(target, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, mode)
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(fileobj, out, self.chunk_size)
        os.chmod(target, mode)
