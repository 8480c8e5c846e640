"""Domain models for the upload pipeline."""

import mimetypes
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"
MONITOR_PROGRESS_CAP = 95
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class UploadPhase(StrEnum):
    """Lifecycle of the current upload task."""

    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SelectedFile:
    """A file picked for upload."""

    name: str
    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def effective_content_type(self) -> str:
        return self.content_type or DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: str | Path) -> "SelectedFile":
        """Read a local file, guessing its type from the extension."""
        file_path = Path(path)
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            content=file_path.read_bytes(),
            content_type=content_type or "",
        )


@dataclass(frozen=True)
class ProcessingMonitor:
    """Polling state machine for backend processing after an upload.

    Processing is observed only indirectly: the monitor finishes once the
    listing holds more photos than before the upload, or once the time budget
    (expected duration plus one poll) is spent.
    """

    initial_count: int
    interval_seconds: float = 10.0
    expected_seconds: float = 60.0
    elapsed: float = 0.0
    progress: int = 0
    finished: bool = False

    @property
    def budget_seconds(self) -> float:
        return self.expected_seconds + self.interval_seconds

    def tick(self) -> "ProcessingMonitor":
        """Advance one poll interval and recompute the synthetic progress."""
        elapsed = self.elapsed + self.interval_seconds
        progress = min(
            round(elapsed / self.expected_seconds * 100), MONITOR_PROGRESS_CAP
        )
        return replace(self, elapsed=elapsed, progress=progress)

    def should_stop(self, photo_count: int) -> bool:
        return photo_count > self.initial_count or self.elapsed >= self.budget_seconds

    def observe(self, photo_count: int) -> "ProcessingMonitor":
        """Evaluate the termination predicate against the latest photo count."""
        if self.should_stop(photo_count):
            return self.complete()
        return self

    def complete(self) -> "ProcessingMonitor":
        return replace(self, progress=100, finished=True)


def format_bytes(size: int) -> str:
    """Format a byte count as a short human-readable string."""
    if size <= 0:
        return "0 Bytes"
    scaled = float(size)
    index = 0
    while scaled >= 1024 and index < len(_SIZE_UNITS) - 1:  # noqa: PLR2004
        scaled /= 1024
        index += 1
    value = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[index]}"
