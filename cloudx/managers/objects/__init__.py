from cloudx.managers.objects.objects import (
    KIND_FILE,
    KIND_FOLDER,
    DownloadTarget,
    Item,
    ObjectManager,
    UploadResult,
)

__all__ = ["ObjectManager", "Item", "UploadResult", "DownloadTarget", "KIND_FILE", "KIND_FOLDER"]
