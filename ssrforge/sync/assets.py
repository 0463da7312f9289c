"""Static asset upload to the storage origin.

Files under an asset copy's versioned sub-directory have content-hashed
names and get the long-lived immutable cache header; everything else gets
the short-lived, revalidating header.  Files are independent, so uploads
run concurrently on a bounded thread pool.
"""

from __future__ import annotations

import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath

from ssrforge.core.errors import SsrForgeError
from ssrforge.core.hasher import bytes_address
from ssrforge.layouts.base import BuildOutputMissing
from ssrforge.models.build import AssetOptions
from ssrforge.models.plan import AssetCopy, Plan
from ssrforge.models.site import ProvisionedSite, ResourceHandle, SyncReport, UploadReceipt
from ssrforge.provisioning.engine import ProvisioningEngine

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_TEXT_CONTENT_TYPES = frozenset({
    "application/javascript",
    "application/json",
    "application/manifest+json",
    "application/xml",
    "image/svg+xml",
})

# Script types vary between platform mimetypes tables; pin them.
_EXTRA_TYPES = {
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".map": "application/json",
    ".webmanifest": "application/manifest+json",
}


class AssetUploadError(SsrForgeError):
    """Raised when one or more files fail to upload."""

    def __init__(self, failures: dict[str, Exception]) -> None:
        self.failures = dict(failures)
        super().__init__(
            f"{len(self.failures)} asset upload(s) failed.\n"
            + "\n".join(f"  - {key}: {exc}" for key, exc in sorted(self.failures.items()))
        )


def content_type_for(path: Path, text_encoding: str) -> str:
    content_type = _EXTRA_TYPES.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0]
    if content_type is None:
        return DEFAULT_CONTENT_TYPE
    if content_type.startswith("text/") or content_type in _TEXT_CONTENT_TYPES:
        return f"{content_type}; charset={text_encoding}"
    return content_type


def is_versioned(relative: PurePosixPath, versioned_sub_dir: str | None) -> bool:
    """Whether *relative* lies under *versioned_sub_dir*."""
    if not versioned_sub_dir:
        return False
    prefix = PurePosixPath(versioned_sub_dir.strip("/")).parts
    return relative.parts[: len(prefix)] == prefix and len(relative.parts) > len(prefix)


class AssetSync:
    """Uploads a plan's static assets through a provisioning engine.

    Parameters
    ----------
    engine:
        Backend that stores objects.
    concurrency:
        Maximum number of uploads in flight.
    """

    def __init__(self, engine: ProvisioningEngine, *, concurrency: int = 8) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.engine = engine
        self.concurrency = concurrency

    def collect(self, copy: AssetCopy, output_path: Path, options: AssetOptions) -> list[tuple[Path, UploadReceipt]]:
        """List ``(source, receipt)`` pairs for every file of *copy*.

        Receipts carry everything but the upload itself; sorting by key
        keeps the report deterministic.
        """
        source_dir = Path(output_path) / copy.from_path
        if not source_dir.is_dir():
            raise BuildOutputMissing("assets", source_dir)

        pending: list[tuple[Path, UploadReceipt]] = []
        for path in sorted(p for p in source_dir.rglob("*") if p.is_file()):
            relative = PurePosixPath(path.relative_to(source_dir).as_posix())
            versioned = is_versioned(relative, copy.versioned_sub_dir)
            key = str(PurePosixPath(copy.to) / relative) if copy.to else str(relative)
            data = path.read_bytes()
            pending.append((
                path,
                UploadReceipt(
                    key=key,
                    cache_control=(
                        options.versioned_files_cache_header
                        if versioned
                        else options.non_versioned_files_cache_header
                    ),
                    content_type=content_type_for(path, options.text_encoding),
                    versioned=versioned,
                    content_address=bytes_address(data),
                    size_bytes=len(data),
                ),
            ))
        return pending

    def _upload(self, bucket: ResourceHandle, source: Path, receipt: UploadReceipt) -> UploadReceipt:
        self.engine.upload_object(
            bucket,
            receipt.key,
            source.read_bytes(),
            cache_control=receipt.cache_control,
            content_type=receipt.content_type,
        )
        logger.debug("Uploaded %s (%s)", receipt.key, receipt.cache_control)
        return receipt

    def sync(self, plan: Plan, site: ProvisionedSite, output_path: Path) -> SyncReport:
        """Upload every asset copy of the plan's storage origins."""
        pending: list[tuple[Path, UploadReceipt]] = []
        for origin in plan.storage_origins:
            for copy in origin.copy_specs:
                pending.extend(self.collect(copy, output_path, plan.assets))

        bucket = site.asset_bucket
        receipts: list[UploadReceipt] = []
        failures: dict[str, Exception] = {}
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = {
                executor.submit(self._upload, bucket, source, receipt): receipt.key
                for source, receipt in pending
            }
            for future, key in futures.items():
                try:
                    receipts.append(future.result())
                except Exception as exc:
                    logger.error("Upload of %s failed: %s", key, exc)
                    failures[key] = exc

        if failures:
            raise AssetUploadError(failures)

        report = SyncReport(
            bucket=bucket.resource_id,
            uploads=sorted(receipts, key=lambda r: r.key),
        )
        logger.info(
            "Synced %d assets to %s (%d versioned, %d non-versioned)",
            len(report.uploads),
            report.bucket,
            report.versioned_count,
            report.non_versioned_count,
        )
        return report
