"""
Validate 命令实现

验证配置文件，通过时显示生效的关键配置。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...config import load_config, ConfigError, ConfigValidationError, UpgradeConfig


console = Console()


def _print_summary(config: UpgradeConfig) -> None:
    table = Table(title="生效配置")
    table.add_column("项目", style="cyan", no_wrap=True)
    table.add_column("值", style="green")

    table.add_row("产品", f"{config.product.name} {config.product.series}.*")
    table.add_row("现有安装", str(config.install.dir))
    table.add_row("工作目录", str(config.install.work_dir or "."))
    table.add_row("排除", f"{len(config.extract.exclude)} 项")
    table.add_row("迁移", f"{', '.join(config.migrate.files)} ({config.migrate.direction.value})")
    owner = f"{config.ownership.uid}:{config.ownership.gid}" if config.ownership.enabled else "不修改"
    table.add_row("属主", owner)
    table.add_row("发布链接", config.links.publish or "-")

    console.print(table)


def validate_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的结果"),
) -> None:
    """验证配置文件

    示例:
        tomcatup validate -c tomcatup.yaml
        tomcatup validate -c tomcatup.yaml --json
    """
    config_path = Path(config)
    report = {"file": str(config_path), "errors": [], "error_count": 0}

    try:
        config_obj = load_config(config_path)
    except ConfigValidationError as e:
        report["errors"] = e.errors
        report["error_count"] = len(e.errors)
    except ConfigError as e:
        report["errors"] = [{"loc": [], "msg": str(e), "type": "config_error"}]
        report["error_count"] = 1
    else:
        if json_output:
            console.print_json(json.dumps(report))
        else:
            console.print(f"[green]✓ 配置文件验证通过[/green]: {config_path}")
            _print_summary(config_obj)
        return

    if json_output:
        console.print_json(json.dumps(report, ensure_ascii=False, default=str))
        raise typer.Exit(1)

    console.print(f"[red]配置文件验证失败 ({report['error_count']} 个错误)[/red]: {config_path}")
    table = Table(show_header=True)
    table.add_column("字段", style="cyan", no_wrap=True)
    table.add_column("类型", style="yellow")
    table.add_column("说明", style="red")
    for err in report["errors"]:
        location = ".".join(str(item) for item in err.get("loc", [])) or "-"
        table.add_row(location, err.get("type", "-"), err.get("msg", "未知错误"))
    console.print(table)

    raise typer.Exit(1)
