"""
解压步骤模块

先把 .tar.gz 解压为中间 .tar，再按排除键解开到工作目录。
"""

from ...utils.logging import warning, LogStage
from ..extractor import ArchiveExtractor
from ..upgrade_context import UpgradeContext
from .upgrade_step import UpgradeStep


class DecompressStep(UpgradeStep):
    """gzip 解压"""

    def __init__(self, extractor: ArchiveExtractor):
        super().__init__("decompress", "解压 gzip 归档")
        self.extractor = extractor

    def execute(self, context: UpgradeContext) -> None:
        assert context.archive_path is not None
        context.tar_path = self.extractor.decompress(context.archive_path, context.work_dir)


class UnpackStep(UpgradeStep):
    """解开 tar 到新安装目录"""

    def __init__(self, extractor: ArchiveExtractor):
        super().__init__("unpack", "解开 tar 归档")
        self.extractor = extractor

    def execute(self, context: UpgradeContext) -> None:
        assert context.tar_path is not None
        root_dirname = self.extractor.unpack(context.tar_path, context.work_dir)

        if context.release is not None and root_dirname != context.release.dirname:
            warning(
                f"归档顶层目录 {root_dirname} 与预期的 {context.release.dirname} 不一致，"
                f"以归档内容为准",
                stage=LogStage.UNPACK,
            )

        context.root_dirname = root_dirname
        context.stats['entries_extracted'] = self.extractor.stats.extracted
        context.stats['entries_skipped'] = self.extractor.stats.skipped
        context.stats['bytes_extracted'] = self.extractor.stats.bytes_written
