"""
tomcatup - Tomcat 就地升级工具

下载并校验新版本归档，解压到并列目录，迁移配置文件，规范属主/权限，
最后把固定的符号链接名切换到新安装目录。
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import UpgradeConfig
from .upgrade.upgrader import Upgrader, UpgradeResult

__all__ = ["UpgradeConfig", "Upgrader", "UpgradeResult", "__version__"]
