"""Asset publication to blob storage.

Responsibilities:
- Run the two-phase upload (storage identifier, then durable URL).
- Expose the outcome only as one complete `AssetReference`.
"""

from __future__ import annotations

from ..errors import StorageError
from ..models.datatypes import Asset, AssetReference
from .blob import BlobStorage


class AssetPublisher:
    """Upload assembled binaries and resolve paired references."""

    def __init__(self, storage: BlobStorage) -> None:
        self.storage = storage

    def publish(self, binary: bytes, content_type: str) -> AssetReference:
        """Upload `binary` and return its durable reference.

        A blob that uploads but whose URL cannot be resolved is left orphaned
        in storage; the caller only ever sees a failure.

        Raises:
            StorageError: If any phase fails.
        """

        try:
            target = self.storage.request_upload_target()
            storage_id = self.storage.upload(target, binary, content_type)
            url = self.storage.resolve_url(storage_id)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(stage="storage", detail=f"Upload failed: {exc}") from exc

        if not url:
            raise StorageError(
                stage="storage",
                detail="Failed to get asset URL after upload.",
                hint="Regenerate the asset to upload it again.",
            )
        return AssetReference(url=url, storage_id=storage_id)

    def publish_asset(self, asset: Asset) -> AssetReference:
        """Publish an `Asset` using its declared content type."""

        return self.publish(asset.data, asset.content_type)
