"""
tomcatup CLI 主入口

提供命令行接口，支持 upgrade/validate/example/info 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from .commands import upgrade, validate


# 创建主应用
app = typer.Typer(
    name="tomcatup",
    help="tomcatup - Tomcat 就地升级工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"tomcatup v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
) -> None:
    """tomcatup - Tomcat 就地升级工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("upgrade", help="升级 Tomcat 安装")(upgrade.upgrade_command)
app.command("validate", help="验证配置文件")(validate.validate_command)


@app.command("info")
def info_command() -> None:
    """显示版本与默认配置"""
    import requests

    from ..config.schema import UpgradeConfig
    from ..upgrade.release import DIST_BASE_URL

    console.print("[bold]tomcatup 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("tomcatup", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("requests", requests.__version__)

    console.print(table)
    console.print()

    defaults = UpgradeConfig()
    defaults_table = Table(title="默认配置")
    defaults_table.add_column("项目", style="cyan")
    defaults_table.add_column("值", style="green")

    defaults_table.add_row("产品", f"{defaults.product.name} {defaults.product.series}")
    defaults_table.add_row("下载地址", DIST_BASE_URL)
    defaults_table.add_row("安装目录", str(defaults.install.dir))
    defaults_table.add_row("排除", ", ".join(defaults.extract.exclude))
    defaults_table.add_row("迁移配置", ", ".join(defaults.migrate.files))
    defaults_table.add_row("迁移方向", defaults.migrate.direction.value)
    defaults_table.add_row("属主", f"{defaults.ownership.uid}:{defaults.ownership.gid}")
    defaults_table.add_row("发布链接", defaults.links.publish or "-")

    console.print(defaults_table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "tomcatup.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import save_config, ConfigError
    from ..config.schema import UpgradeConfig

    config = UpgradeConfig.from_dict({
        "install": {"dir": "/opt/tomcat8", "work_dir": "/opt"},
        "links": {
            "publish": "tomcat8",
            "extra": [
                {"target": "/var/log/tomcat8", "link": "logs-archive"},
            ],
        },
        "logging": {"file": "/var/log/tomcatup.log"},
    })

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]tomcatup upgrade -c {output} --ver 40[/cyan]")


if __name__ == "__main__":
    app()
