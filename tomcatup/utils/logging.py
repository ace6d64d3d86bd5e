"""
日志工具 - 统一输出门面

封装 Rich Console 的带时间戳输出，所有升级阶段的进度行都从这里输出。
错误写到 stderr；设置日志文件后，每条记录附带完整日期追加写入文件。
"""

import atexit
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape

from .paths import ensure_directory


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """日志阶段标记，与升级流水线的步骤一一对应"""
    VERSION = "VERSION"
    CHECKSUM = "CHECKSUM"
    DOWNLOAD = "DOWNLOAD"
    DECOMPRESS = "DECOMPRESS"
    UNPACK = "UNPACK"
    MIGRATE = "MIGRATE"
    PERMISSION = "PERMISSION"
    OWNER = "OWNER"
    LINK = "LINK"
    DONE = "DONE"

    UPGRADE = "UPGRADE"
    ERROR = "ERROR"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
    OutputLevel.ERROR: "red bold",
}


class OutputFacade:
    """输出门面

    统一封装所有输出操作。所有输出都包含时间戳，支持彩色输出。
    """

    def __init__(self, stdout: Optional[Any] = None, stderr: Optional[Any] = None):
        self._lock = threading.RLock()
        self._file_handle = None  # type: Optional[Any]
        self._log_level = OutputLevel.INFO
        self._date_format = "%Y-%m-%d %H:%M:%S"
        self._time_format = "%H:%M:%S"

        # 未指定时由 Rich 在每次输出时解析 sys.stdout/sys.stderr
        self._console = Console(
            file=stdout,
            highlight=False,
            log_time=False,
            log_path=False,
        )
        self._error_console = Console(
            file=stderr,
            stderr=True,
            highlight=False,
        )

    @property
    def level(self) -> str:
        return self._log_level

    def _get_timestamp(self, include_date: bool = False) -> str:
        """获取格式化的时间戳"""
        now = datetime.now()
        if include_date:
            return now.strftime(self._date_format)
        return now.strftime(self._time_format)

    def _should_output(self, level: str) -> bool:
        current_level = _LEVEL_ORDER.get(self._log_level, 1)
        msg_level = _LEVEL_ORDER.get(level, 1)
        return msg_level >= current_level

    def _format_message(self, message: str, level: str = OutputLevel.INFO,
                        stage: Optional[str] = None, include_date: bool = False) -> str:
        """格式化纯文本消息（日志文件使用）"""
        timestamp = self._get_timestamp(include_date)
        if stage:
            return f"[{timestamp}] [{level}] [{stage}] {message}"
        return f"[{timestamp}] [{level}] {message}"

    def _emit(self, message: str, level: str, stage: Optional[str] = None,
              include_date: bool = False) -> None:
        timestamp = self._get_timestamp(include_date)
        # 消息里可能带有方括号（如路径、状态码），需要转义后再交给 Rich
        body = escape(message)
        if level == OutputLevel.ERROR:
            console = self._error_console
            level_markup = "[bold red]ERROR[/bold red]"
        else:
            console = self._console
            level_markup = f"[bold]{level}[/bold]"

        if stage:
            formatted = f"[dim]{timestamp}[/dim] {level_markup} [cyan]{stage}[/cyan] {body}"
        else:
            formatted = f"[dim]{timestamp}[/dim] {level_markup} {body}"

        console.print(formatted, style=_LEVEL_STYLES.get(level, "default"))

    def _write_to_file(self, message: str, level: str, stage: Optional[str] = None) -> None:
        if not self._file_handle:
            return
        self._file_handle.write(self._format_message(message, level, stage, include_date=True) + "\n")
        self._file_handle.flush()

    def log(self, level: str, message: str, stage: Optional[str] = None,
            include_date: bool = False) -> None:
        """按级别输出一条消息"""
        with self._lock:
            if self._should_output(level):
                self._emit(message, level, stage, include_date)
            # 日志文件不受终端级别影响，静默模式下也保留完整记录
            self._write_to_file(message, level, stage)

    def set_level(self, level: str) -> None:
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER:
                self._log_level = level

    def set_log_file(self, file_path: Union[str, Path]) -> None:
        """设置日志文件（追加写入）

        Raises:
            OSError: 文件无法打开
        """
        with self._lock:
            self.close()
            log_path = Path(file_path)
            ensure_directory(log_path.parent)
            self._file_handle = open(log_path, "a", encoding="utf-8")

    def close(self) -> None:
        with self._lock:
            if self._file_handle:
                self._file_handle.close()
                self._file_handle = None


_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().log(OutputLevel.DEBUG, message, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().log(OutputLevel.INFO, message, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().log(OutputLevel.SUCCESS, message, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().log(OutputLevel.WARNING, message, stage)


def error(message: str, stage: Optional[str] = None, include_date: bool = False) -> None:
    """错误信息输出

    include_date 为 True 时终端输出也带完整日期（--log 模式）。
    """
    get_output_facade().log(OutputLevel.ERROR, message, stage, include_date)


def set_log_level(level: str) -> None:
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]) -> None:
    get_output_facade().set_log_file(file_path)


def configure_logging(level: str = OutputLevel.INFO,
                      log_file: Optional[Union[str, Path]] = None) -> None:
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


def close_logger() -> None:
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


class StageLogger:
    """阶段日志器，固定携带一个阶段标记"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str) -> None:
        debug(message, self.stage)

    def info(self, message: str) -> None:
        info(message, self.stage)

    def success(self, message: str) -> None:
        success(message, self.stage)

    def warning(self, message: str) -> None:
        warning(message, self.stage)

    def error(self, message: str) -> None:
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    return StageLogger(stage)


atexit.register(close_logger)
