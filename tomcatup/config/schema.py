"""
配置 Schema 定义

使用 Pydantic 定义升级工具的 YAML 配置模型。所有字段都有默认值，
没有配置文件时也能按默认的 Tomcat 8.5 布局运行。
配置在启动时构造一次，之后不可修改（frozen），以参数形式传给各组件。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_EXCLUDE: Tuple[str, ...] = (
    "LICENSE",
    "NOTICE",
    "webapps/docs",
    "webapps/examples",
    "webapps/host-manager",
    "webapps/manager",
    "webapps/ROOT",
)

DEFAULT_CONFIG_FILES: Tuple[str, ...] = (
    "logging.properties",
    "server.xml",
    "web.xml",
)

SUPPORTED_CONFIG_VERSIONS = (1,)


class MigrationDirection(str, Enum):
    """配置迁移方向"""
    NEW_TO_EXISTING = "new-to-existing"
    EXISTING_TO_NEW = "existing-to-new"


class _SettingsModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )


class ConfigModel(_SettingsModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator("version")
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        if v not in SUPPORTED_CONFIG_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {list(SUPPORTED_CONFIG_VERSIONS)}")
        return v


class ProductModel(_SettingsModel):
    """产品信息模型"""
    name: str = Field("apache-tomcat", description="归档与目录名前缀", min_length=1, max_length=100)
    major: int = Field(8, description="主版本号", ge=1)
    minor: int = Field(5, description="次版本号", ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if "/" in v or v.startswith("."):
            raise ValueError("产品名不能包含路径分隔符或以 . 开头")
        return v

    @property
    def series(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def download_page(self) -> str:
        """官方下载页，用于提示当前可用版本"""
        return f"https://tomcat.apache.org/download-{self.major}0.cgi"


class InstallModel(_SettingsModel):
    """安装目录配置模型"""
    dir: Path = Field(Path("/opt/tomcat8"), description="现有安装目录")
    conf_dir: str = Field("conf", description="配置子目录名", min_length=1)
    work_dir: Optional[Path] = Field(
        None,
        description="下载、解压与发布链接的工作目录（默认当前目录）",
    )

    @field_validator("conf_dir")
    @classmethod
    def validate_conf_dir(cls, v: str) -> str:
        path = PurePosixPath(v)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError("配置子目录必须是安装目录内的相对路径")
        return v


class DownloadModel(_SettingsModel):
    """下载配置模型"""
    timeout_sec: int = Field(60, description="单次请求超时（秒）", ge=1, le=3600)
    chunk_size: int = Field(64 * 1024, description="流式写入块大小（字节）", ge=1024)


class ExtractModel(_SettingsModel):
    """解压配置模型"""
    exclude: Tuple[str, ...] = Field(DEFAULT_EXCLUDE, description="排除键列表（根目录下的 1-2 段路径）")

    @field_validator("exclude")
    @classmethod
    def validate_exclude(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """规范化排除键：去掉首尾斜杠、去重并保持顺序"""
        cleaned = []
        for key in v:
            key = key.strip().strip("/")
            if not key:
                continue
            if len(key.split("/")) > 2:
                raise ValueError(f"排除键最多两段路径: {key}")
            if key not in cleaned:
                cleaned.append(key)
        return tuple(cleaned)


class MigrateModel(_SettingsModel):
    """配置迁移模型"""
    files: Tuple[str, ...] = Field(DEFAULT_CONFIG_FILES, description="需要迁移的配置文件名")
    direction: MigrationDirection = Field(
        MigrationDirection.NEW_TO_EXISTING,
        description="迁移方向",
    )

    @field_validator("files")
    @classmethod
    def validate_files(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for name in v:
            if not name or "/" in name or name in (".", ".."):
                raise ValueError(f"配置文件名必须是单个文件名: {name!r}")
        if len(set(v)) != len(v):
            raise ValueError("配置文件名不能重复")
        return v


class OwnershipModel(_SettingsModel):
    """属主配置模型"""
    enabled: bool = Field(True, description="是否递归修改新安装目录的属主")
    uid: int = Field(106, description="用户 ID", ge=0)
    gid: int = Field(114, description="组 ID", ge=0)


class LinkModel(_SettingsModel):
    """附加符号链接：link 相对新安装目录，指向 target"""
    target: str = Field(..., description="链接指向的路径", min_length=1)
    link: str = Field(..., description="链接路径（相对新安装目录）", min_length=1)

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: str) -> str:
        path = PurePosixPath(v)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError("链接路径必须位于新安装目录内")
        return v.rstrip("/")


class LinksModel(_SettingsModel):
    """符号链接发布配置"""
    publish: Optional[str] = Field("tomcat8", description="指向新安装目录的固定链接名（相对工作目录）")
    extra: Tuple[LinkModel, ...] = Field((), description="新安装目录内的附加链接")


class LoggingModel(_SettingsModel):
    """日志配置模型"""
    file: Optional[Path] = Field(None, description="日志文件路径（追加写入）")


class UpgradeConfig(_SettingsModel):
    """升级工具主配置模型"""

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")
    product: ProductModel = Field(default_factory=ProductModel, description="产品信息")
    install: InstallModel = Field(default_factory=InstallModel, description="安装目录")
    download: DownloadModel = Field(default_factory=DownloadModel, description="下载配置")
    extract: ExtractModel = Field(default_factory=ExtractModel, description="解压配置")
    migrate: MigrateModel = Field(default_factory=MigrateModel, description="配置迁移")
    ownership: OwnershipModel = Field(default_factory=OwnershipModel, description="属主配置")
    links: LinksModel = Field(default_factory=LinksModel, description="符号链接配置")
    logging: LoggingModel = Field(default_factory=LoggingModel, description="日志配置")

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入 YAML 的字典"""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpgradeConfig":
        return cls.model_validate(data)

    def with_overrides(
        self,
        install_dir: Optional[Path] = None,
        work_dir: Optional[Path] = None,
        log_file: Optional[Path] = None,
    ) -> "UpgradeConfig":
        """返回应用命令行覆盖项后的新配置（原配置不变）"""
        install_update: Dict[str, Any] = {}
        if install_dir is not None:
            install_update["dir"] = Path(install_dir)
        if work_dir is not None:
            install_update["work_dir"] = Path(work_dir)

        update: Dict[str, Any] = {}
        if install_update:
            update["install"] = self.install.model_copy(update=install_update)
        if log_file is not None:
            update["logging"] = self.logging.model_copy(update={"file": Path(log_file)})

        if not update:
            return self
        return self.model_copy(update=update)
