"""
版本解析相关步骤

检查现有安装、确定目标版本与下载地址、获取发布的校验和。
"""

from ...utils.logging import info, LogStage
from ..downloader import Downloader
from ..release import ReleaseVersion, build_release_urls
from ..upgrade_context import UpgradeContext
from .upgrade_step import UpgradeStep


class InstallCheckStep(UpgradeStep):
    """确认现有安装目录存在（在任何网络访问之前）"""

    def __init__(self):
        super().__init__("check", "检查现有安装目录")

    def execute(self, context: UpgradeContext) -> None:
        existing = context.existing_dir
        if not existing.is_dir():
            raise FileNotFoundError(
                f"找不到 Tomcat 安装目录 {str(existing)!r}，请使用 --dir 指定其他目录"
            )


class ReleaseResolutionStep(UpgradeStep):
    """由配置和补丁版本号生成发行版本与下载地址"""

    def __init__(self):
        super().__init__("resolve", "解析目标版本与下载地址")

    def execute(self, context: UpgradeContext) -> None:
        release = ReleaseVersion.from_product(context.config.product, context.patch)
        context.release = release
        context.urls = build_release_urls(release)
        info(f"将从 {context.urls.archive_url} 下载 Tomcat {release.version}", stage=LogStage.VERSION)


class ChecksumStep(UpgradeStep):
    """获取发行主机上发布的校验和"""

    def __init__(self, downloader: Downloader):
        super().__init__("checksum", "获取发布的校验和")
        self.downloader = downloader

    def execute(self, context: UpgradeContext) -> None:
        assert context.urls is not None
        info(f"获取校验和 {context.urls.checksum_url}", stage=LogStage.CHECKSUM)
        context.expected_digest = self.downloader.fetch_checksum(context.urls.checksum_url)
