"""
Upgrade 命令实现

就地升级的核心命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console

from ...config import load_config, ConfigError, ConfigValidationError, UpgradeConfig
from ...utils import configure_logging, expand_path
from ...utils.logging import error, set_log_file, OutputLevel, LogStage


console = Console()


def fail(message: str, log_errors: bool) -> None:
    """终止运行

    --log 时带完整日期写入日志（终端 + 日志文件）并以状态 1 退出；
    否则只在终端显示消息并以状态 0 退出。
    """
    if log_errors:
        error(message, stage=LogStage.ERROR, include_date=True)
        raise typer.Exit(1)
    console.print(f"\n{message}", markup=False, highlight=False)
    raise typer.Exit(0)


def ask_patch_version(series: str) -> int:
    """交互式询问补丁版本号，直到输入有效的非负整数"""
    while True:
        value = typer.prompt(f"要下载哪个 Tomcat {series}.* 版本？请输入补丁号", type=int)
        if value >= 0:
            return value
        console.print("[yellow]版本号不能为负数[/yellow]")


def upgrade_command(
    ver: Optional[int] = typer.Option(None, "--ver", "-V", min=0, help="要下载的补丁版本号，如 40 表示 8.5.40"),
    directory: Optional[str] = typer.Option(None, "--dir", help="现有 Tomcat 安装目录"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="配置文件路径"),
    work_dir: Optional[str] = typer.Option(None, "--work-dir", help="下载与解压的工作目录，默认当前目录"),
    log_errors: bool = typer.Option(False, "--log", help="出错时带时间戳记录并以状态 1 退出"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件（追加）"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="只输出错误"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出每个处理的文件和目录 (DEBUG 级别)"),
) -> None:
    """就地升级 Tomcat

    下载并校验指定版本，解压到工作目录，迁移配置文件，
    规范权限与属主，最后切换发布链接。

    示例:
        tomcatup upgrade --ver 40
        tomcatup upgrade -V 40 --dir /opt/tomcat8 --log
    """
    from ...upgrade.upgrader import Upgrader

    if sys.platform.startswith("win"):
        fail("本工具不支持 Microsoft Windows", log_errors)

    # 初始化日志：在任何输出前设置
    if quiet:
        configure_logging(level=OutputLevel.ERROR)
    elif verbose:
        configure_logging(level=OutputLevel.DEBUG)
    else:
        configure_logging(level=OutputLevel.INFO)

    try:
        config_obj = load_config(config) if config else UpgradeConfig()
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    config_obj = config_obj.with_overrides(
        install_dir=expand_path(directory) if directory else None,
        work_dir=expand_path(work_dir) if work_dir else None,
        log_file=expand_path(log_file) if log_file else None,
    )

    if config_obj.logging.file:
        try:
            set_log_file(config_obj.logging.file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {config_obj.logging.file}[/yellow]")

    install_dir = config_obj.install.dir
    if not install_dir.exists():
        fail(
            f"找不到 Tomcat 安装目录 {str(install_dir)!r}，请使用 --dir 指定其他目录",
            log_errors,
        )

    patch = ver if ver is not None else ask_patch_version(config_obj.product.series)

    result = Upgrader(config_obj).upgrade(patch)
    if not result.success:
        fail(result.error or "升级失败", log_errors)

    if not quiet:
        console.print(f"[green]✓ 升级完成[/green]: {result.install_dir}")
        if result.migrations:
            console.print(f"[blue]已迁移配置[/blue]: {', '.join(m.name for m in result.migrations)}")
        if result.elapsed is not None:
            console.print(f"[blue]耗时[/blue]: {result.elapsed:.1f} 秒")
