"""升级步骤"""

from .upgrade_step import UpgradeStep
from .release_steps import InstallCheckStep, ReleaseResolutionStep, ChecksumStep
from .download_step import DownloadStep
from .extraction_steps import DecompressStep, UnpackStep
from .migration_step import MigrationStep
from .finalize_steps import PermissionStep, OwnershipStep, LinkStep

__all__ = [
    "UpgradeStep",
    "InstallCheckStep",
    "ReleaseResolutionStep",
    "ChecksumStep",
    "DownloadStep",
    "DecompressStep",
    "UnpackStep",
    "MigrationStep",
    "PermissionStep",
    "OwnershipStep",
    "LinkStep",
]
