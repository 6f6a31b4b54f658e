from .step_10_prepare_repo import PrepareRepoStep
from .step_20_detect_platform import DetectPlatformStep
from .step_30_download_binaries import DownloadBinariesStep
from .step_35_set_permissions import SetPermissionsStep
from .step_40_install_service import InstallServiceStep
from .step_50_patch_config import PatchConfigStep
from .step_60_stop_service import StopServiceStep
from .step_70_restore_snapshot import RestoreSnapshotStep
from .step_80_start_service import StartServiceStep
from .step_90_follow_logs import FollowLogsStep

__all__ = [
    "PrepareRepoStep",
    "DetectPlatformStep",
    "DownloadBinariesStep",
    "SetPermissionsStep",
    "InstallServiceStep",
    "PatchConfigStep",
    "StopServiceStep",
    "RestoreSnapshotStep",
    "StartServiceStep",
    "FollowLogsStep",
]
