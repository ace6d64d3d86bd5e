"""
收尾步骤模块

权限、属主规范化与符号链接发布，只在新目录完整解开且配置迁移完成后执行。
"""

import os

from ...utils.logging import info, success, warning, LogStage
from ..links import create_link, rotate_link
from ..permissions import change_owner, ensure_group_rwx
from ..upgrade_context import UpgradeContext
from .upgrade_step import UpgradeStep


class PermissionStep(UpgradeStep):
    """配置子目录补齐组读写执行位（chmod g+rwx）"""

    def __init__(self):
        super().__init__("permission", "规范配置目录权限")

    def execute(self, context: UpgradeContext) -> None:
        assert context.install_dir is not None
        ensure_group_rwx(context.install_dir / context.config.install.conf_dir)


class OwnershipStep(UpgradeStep):
    """递归修改新安装目录属主（chown -R uid:gid）"""

    def __init__(self):
        super().__init__("ownership", "修改新安装目录属主")

    def execute(self, context: UpgradeContext) -> None:
        assert context.install_dir is not None
        settings = context.config.ownership
        if not settings.enabled:
            info("已禁用属主修改，跳过", stage=LogStage.OWNER)
            return

        info(
            f"修改 {context.install_dir}/ 的属主为用户 ID {settings.uid}、组 ID {settings.gid}",
            stage=LogStage.OWNER,
        )
        stats = change_owner(context.install_dir, settings.uid, settings.gid)
        context.stats['owner_changed'] = stats.changed
        context.stats['owner_failed'] = stats.failed

        if stats.failed:
            warning(f"{stats.failed} 项属主修改失败（使用 --verbose 查看明细）", stage=LogStage.OWNER)
        else:
            success(f"完成，共 {stats.changed} 项", stage=LogStage.OWNER)


class LinkStep(UpgradeStep):
    """创建附加链接并把发布链接切换到新安装目录"""

    def __init__(self):
        super().__init__("link", "发布符号链接")

    def execute(self, context: UpgradeContext) -> None:
        assert context.install_dir is not None and context.root_dirname is not None
        settings = context.config.links

        for extra in settings.extra:
            link_path = context.install_dir / extra.link
            if create_link(extra.target, link_path):
                context.links.append(link_path)

        if settings.publish:
            publish_path = context.in_work_dir(settings.publish)
            # 目标相对于链接所在目录
            target = os.path.relpath(context.install_dir, publish_path.parent)
            rotate_link(target, publish_path)
            context.links.append(publish_path)
