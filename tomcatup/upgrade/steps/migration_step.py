"""
配置迁移步骤模块
"""

from ...config.schema import MigrationDirection
from ..migrator import ConfigMigrator
from ..upgrade_context import UpgradeContext
from .upgrade_step import UpgradeStep


class MigrationStep(UpgradeStep):
    """在新旧安装的配置子目录之间迁移配置文件"""

    def __init__(self, migrator: ConfigMigrator):
        super().__init__("migrate", "迁移配置文件")
        self.migrator = migrator

    def execute(self, context: UpgradeContext) -> None:
        assert context.install_dir is not None
        settings = context.config.migrate
        conf_dir = context.config.install.conf_dir

        new_conf = context.install_dir / conf_dir
        existing_conf = context.existing_dir / conf_dir

        if settings.direction == MigrationDirection.NEW_TO_EXISTING:
            source, destination = new_conf, existing_conf
        else:
            source, destination = existing_conf, new_conf

        context.migrations = self.migrator.migrate(source, destination, settings.files)
