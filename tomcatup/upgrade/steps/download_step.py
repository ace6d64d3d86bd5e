"""
下载步骤模块

本地归档与发布的校验和一致时不发起下载。
"""

from ..downloader import Downloader
from ..upgrade_context import UpgradeContext
from .upgrade_step import UpgradeStep


class DownloadStep(UpgradeStep):
    """按需下载发行归档"""

    def __init__(self, downloader: Downloader):
        super().__init__("download", "下载发行归档")
        self.downloader = downloader

    def execute(self, context: UpgradeContext) -> None:
        assert context.release is not None and context.urls is not None
        assert context.expected_digest is not None

        destination = context.in_work_dir(context.release.filename)
        artifact = self.downloader.download_if_needed(
            context.urls.archive_url,
            context.expected_digest,
            destination,
        )

        context.artifact = artifact
        context.downloaded = artifact is not None
        context.archive_path = destination
