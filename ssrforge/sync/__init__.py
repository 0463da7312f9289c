"""Post-provisioning steps: asset upload and cache invalidation."""

from ssrforge.sync.assets import AssetSync, AssetUploadError
from ssrforge.sync.invalidation import InvalidationDriver, InvalidationTimeout

__all__ = ["AssetSync", "AssetUploadError", "InvalidationDriver", "InvalidationTimeout"]
