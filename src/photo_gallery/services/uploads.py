"""Upload pipeline: storage transfer and processing monitor setup."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import quote

import httpx

from photo_gallery.adapters.upload_client import ProgressCallback, StorageUploadClient
from photo_gallery.domain.uploads import ProcessingMonitor, SelectedFile

NO_FILE_MESSAGE = "Please select a file to upload."
NETWORK_ERROR_MESSAGE = "A network error occurred during the upload."

_logger = logging.getLogger(__name__)


class UploadTransportError(RuntimeError):
    """Raised when the storage write fails or returns a non-2xx status."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class UploadPipeline:
    """Moves a selected file into storage and prepares processing monitoring."""

    upload_client: StorageUploadClient
    upload_endpoint: str
    poll_interval_seconds: float = 10.0
    expected_processing_seconds: float = 60.0
    clock: Callable[[], datetime] = _utc_now

    def object_url(self, file: SelectedFile) -> str:
        """Build the storage URL ``<endpoint>/<epoch-ms>-<escaped name>``."""
        timestamp = int(self.clock().timestamp() * 1000)
        key = f"{timestamp}-{quote(file.name, safe='')}"
        return f"{self.upload_endpoint.rstrip('/')}/{key}"

    async def transfer(
        self,
        file: SelectedFile,
        token: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Upload ``file`` with a single PUT and return the URL written."""
        url = self.object_url(file)
        _logger.info("Uploading %s (%s bytes) to %s", file.name, file.size, url)
        try:
            await self.upload_client.put_object(
                url,
                file.content,
                file.effective_content_type,
                token=token or None,
                on_progress=on_progress,
            )
        except httpx.HTTPStatusError as exc:
            response = exc.response
            _logger.error(
                "Upload failed: status=%s reason=%s body=%s",
                response.status_code,
                response.reason_phrase,
                response.text,
            )
            raise UploadTransportError(
                f"Upload failed with status: {response.status_code}"
                f" - {response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            _logger.error("Upload network error: %s", exc)
            raise UploadTransportError(NETWORK_ERROR_MESSAGE) from exc
        _logger.info("Upload successful: %s", url)
        return url

    def start_monitor(self, photo_count: int) -> ProcessingMonitor:
        """Create a monitor anchored on the photo count before processing."""
        return ProcessingMonitor(
            initial_count=photo_count,
            interval_seconds=self.poll_interval_seconds,
            expected_seconds=self.expected_processing_seconds,
        )

    @property
    def processing_message(self) -> str:
        return (
            "Processing image... This typically takes about "
            f"{round(self.expected_processing_seconds)} seconds"
        )
