"""
校验和工具

对网络响应体、本地文件或内存缓冲区计算完整内容的摘要。
固定使用 SHA-1，与发行方发布的 .sha1 文件对应。
"""

import hashlib
from pathlib import Path
from typing import BinaryIO, Iterable, Union

DEFAULT_ALGORITHM = "sha1"
CHUNK_SIZE = 64 * 1024


class HashCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        """初始化哈希计算器

        Args:
            algorithm: hashlib 支持的算法名称
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_from_stream(self, stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> None:
        """读取流直到 EOF 并更新哈希

        读错误原样向上抛出。
        """
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            self._hasher.update(chunk)

    def update_from_chunks(self, chunks: Iterable[bytes]) -> None:
        """从字节块迭代器更新哈希（如 requests 的 iter_content）"""
        for chunk in chunks:
            if chunk:
                self._hasher.update(chunk)

    def update_from_file(self, file_path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> None:
        with open(file_path, 'rb') as f:
            self.update_from_stream(f, chunk_size)

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


def digest(stream: BinaryIO, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """计算流的十六进制摘要（读取到 EOF）"""
    calculator = HashCalculator(algorithm)
    calculator.update_from_stream(stream)
    return calculator.hexdigest()


def digest_chunks(chunks: Iterable[bytes], algorithm: str = DEFAULT_ALGORITHM) -> str:
    """计算字节块序列的十六进制摘要"""
    calculator = HashCalculator(algorithm)
    calculator.update_from_chunks(chunks)
    return calculator.hexdigest()


def digest_file(file_path: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM) -> str:
    """计算文件的十六进制摘要

    Raises:
        OSError: 文件无法打开或读取
    """
    calculator = HashCalculator(algorithm)
    calculator.update_from_file(file_path)
    return calculator.hexdigest()


def normalize(value: str) -> str:
    return value.strip().lower()


def compare(a: str, b: str) -> bool:
    """逐字比较两个十六进制摘要（忽略首尾空白与大小写）

    任一摘要为空时视为不相等。
    """
    if not a or not b:
        return False
    return normalize(a) == normalize(b)
