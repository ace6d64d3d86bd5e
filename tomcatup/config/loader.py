"""
配置加载器

负责从 YAML 文件加载配置并进行验证。
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..utils.paths import ensure_directory, expand_path
from .schema import UpgradeConfig

# 需要展开 ~ 与环境变量的路径字段
_PATH_FIELDS = (
    ("install", "dir"),
    ("install", "work_dir"),
    ("logging", "file"),
)


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val not in ('', None):
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


@dataclass
class ValidationResult:
    """配置验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    config: Optional[UpgradeConfig] = None


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML(typ="safe")
        self.yaml.default_flow_style = False
        self.yaml.width = 4096

    def load_from_file(self, config_path: Union[str, Path]) -> UpgradeConfig:
        """从文件加载配置

        Args:
            config_path: 配置文件路径

        Returns:
            UpgradeConfig: 验证后的配置实例

        Raises:
            ConfigError: 配置加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}")
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}")

        # 空文件等价于全部使用默认值
        if raw_data is None:
            raw_data = {}

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        self._expand_paths(raw_data, config_path.parent)

        return self.load_from_dict(raw_data)

    def load_from_dict(self, data: Dict[str, Any]) -> UpgradeConfig:
        """从字典加载配置

        Raises:
            ConfigValidationError: 配置验证错误
        """
        try:
            return UpgradeConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors()))

    def save_to_file(self, config: UpgradeConfig, output_path: Union[str, Path]) -> None:
        """保存配置到文件

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)

        try:
            ensure_directory(output_path.parent)
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}")

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证配置文件并返回错误列表，空列表表示验证通过"""
        try:
            self.load_from_file(config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]

    def _expand_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        """展开路径中的 ~ 与环境变量

        日志文件的相对路径按配置文件所在目录解析；安装目录与工作目录的
        相对路径保持原样，按运行时的当前目录解释。
        """
        for section_name, key in _PATH_FIELDS:
            section = data.get(section_name)
            if not isinstance(section, dict):
                continue
            value = section.get(key)
            if not isinstance(value, str) or not value:
                continue

            path = expand_path(value)
            if section_name == "logging" and not path.is_absolute():
                path = (base_path / path).resolve()
            section[key] = str(path)


config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> UpgradeConfig:
    """便捷函数：加载配置文件"""
    return config_loader.load_from_file(config_path)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证配置文件"""
    return config_loader.validate_file(config_path)


def validate_config_with_result(config_path: Union[str, Path]) -> ValidationResult:
    """验证配置并返回详细结果"""
    try:
        config = load_config(config_path)
        return ValidationResult(is_valid=True, config=config)
    except ConfigValidationError as e:
        return ValidationResult(is_valid=False, errors=e.format_errors().splitlines())
    except ConfigError as e:
        return ValidationResult(is_valid=False, errors=[f"配置加载失败: {e}"])


def save_config(config: UpgradeConfig, output_path: Union[str, Path]) -> None:
    """便捷函数：保存配置文件"""
    config_loader.save_to_file(config, output_path)
