"""View state for the gallery UI and its update functions.

Every function below is pure: it takes the current ``ViewState`` plus the
action's data and returns the next state. The controller is the only caller.
"""

from dataclasses import dataclass, field, replace

from photo_gallery.domain.photos import Photo
from photo_gallery.domain.session import Session
from photo_gallery.domain.uploads import SelectedFile, UploadPhase

BROKEN_IMAGE_CLASS = "broken-image"
PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;base64,"
    "PHN2ZyB3aWR0aD0iMjAwIiBoZWlnaHQ9IjIwMCIgeG1sbnM9Imh0dHA6Ly93d3cudzMub3Jn"
    "LzIwMDAvc3ZnIj48ZyBmaWxsPSJub25lIiBmaWxsLXJ1bGU9ImV2ZW5vZGQiPjxyZWN0IGZp"
    "bGw9IiNFRUVFRUUiIHdpZHRoPSIyMDAiIGhlaWdodD0iMjAwIiByeD0iNCIvPjxnIHRyYW5z"
    "Zm9ybT0idHJhbnNsYXRlKDcwLjU2MiA2OC41NjIpIiBzdHJva2U9IiM5OTkiIHN0cm9rZS13"
    "aWR0aD0iMyI+PGNpcmNsZSBjeD0iOS41IiBjeT0iOS41IiByPSI5LjUiLz48cGF0aCBkPSJN"
    "MzkuNDM4IDU5LjQzOEw5LjUgOS41Ii8+PGNpcmNsZSBjeD0iMzkuNDM4IiBjeT0iNTkuNDM4"
    "IiByPSI5LjUiLz48L2c+PC9nPjwvc3ZnPg=="
)


@dataclass
class ImageElement:
    """Minimal stand-in for a rendered thumbnail element."""

    src: str
    classes: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class ViewState:
    """Immutable snapshot of everything the render layer displays."""

    is_authenticated: bool = False
    username: str = ""
    auth_loading: bool = False

    photos: tuple[Photo, ...] = ()
    loading: bool = False
    error: str | None = None
    fetch_generation: int = 0
    broken_thumbnails: frozenset[int] = frozenset()

    file_to_upload: SelectedFile | None = None
    uploading: bool = False
    upload_progress: int | None = None
    upload_error: str | None = None
    upload_success: bool = False
    upload_phase: UploadPhase = UploadPhase.IDLE

    processing_image: bool = False
    processing_progress: int = 0
    processing_message: str = ""

    show_modal: bool = False
    selected_photo: Photo | None = None
    modal_loading: bool = False
    modal_generation: int = 0


# --- session -----------------------------------------------------------------


def session_changed(state: ViewState, session: Session) -> ViewState:
    return replace(
        state,
        is_authenticated=session.is_authenticated,
        username=session.username,
        auth_loading=session.loading,
    )


def photos_cleared(state: ViewState) -> ViewState:
    return replace(state, photos=(), broken_thumbnails=frozenset())


# --- gallery -----------------------------------------------------------------


def fetch_started(state: ViewState) -> ViewState:
    return replace(
        state,
        loading=True,
        error=None,
        fetch_generation=state.fetch_generation + 1,
    )


def fetch_succeeded(
    state: ViewState, generation: int, photos: list[Photo]
) -> ViewState:
    """Replace the photo set, unless a newer fetch has been issued since."""
    if generation != state.fetch_generation:
        return state
    return replace(
        state,
        photos=tuple(photos),
        loading=False,
        error=None,
        broken_thumbnails=frozenset(),
    )


def fetch_failed(state: ViewState, generation: int, message: str) -> ViewState:
    if generation != state.fetch_generation:
        return state
    return replace(
        state,
        photos=(),
        loading=False,
        error=message,
        broken_thumbnails=frozenset(),
    )


def thumbnail_broken(state: ViewState, index: int) -> ViewState:
    return replace(state, broken_thumbnails=state.broken_thumbnails | {index})


# --- upload ------------------------------------------------------------------


def file_selected(state: ViewState, file: SelectedFile | None) -> ViewState:
    return replace(
        state,
        file_to_upload=file,
        upload_error=None,
        upload_success=False,
        upload_phase=(
            UploadPhase.IDLE if not state.processing_image else state.upload_phase
        ),
    )


def upload_rejected(state: ViewState, message: str) -> ViewState:
    return replace(state, upload_error=message)


def upload_started(state: ViewState) -> ViewState:
    return replace(
        state,
        uploading=True,
        upload_progress=None,
        upload_error=None,
        upload_success=False,
        upload_phase=UploadPhase.UPLOADING,
    )


def upload_progressed(state: ViewState, percent: int) -> ViewState:
    return replace(state, upload_progress=percent)


def upload_failed(state: ViewState, message: str) -> ViewState:
    """Surface a transfer failure; the selected file stays for a retry."""
    return replace(
        state,
        uploading=False,
        upload_error=message,
        upload_phase=UploadPhase.FAILED,
    )


def upload_succeeded(state: ViewState) -> ViewState:
    return replace(
        state,
        uploading=False,
        upload_success=True,
        file_to_upload=None,
    )


def processing_started(state: ViewState, message: str) -> ViewState:
    return replace(
        state,
        processing_image=True,
        processing_progress=0,
        processing_message=message,
        upload_phase=UploadPhase.PROCESSING,
    )


def processing_progressed(state: ViewState, percent: int) -> ViewState:
    return replace(state, processing_progress=percent)


def processing_completed(state: ViewState, message: str) -> ViewState:
    return replace(
        state,
        processing_progress=100,
        processing_message=message,
        upload_phase=UploadPhase.DONE,
    )


def processing_dismissed(state: ViewState) -> ViewState:
    return replace(state, processing_image=False)


def upload_success_cleared(state: ViewState) -> ViewState:
    phase = state.upload_phase
    if phase == UploadPhase.DONE:
        phase = UploadPhase.IDLE
    return replace(state, upload_success=False, upload_phase=phase)


# --- modal -------------------------------------------------------------------


def modal_opened(state: ViewState, photo: Photo) -> ViewState:
    return replace(
        state,
        selected_photo=photo,
        show_modal=True,
        modal_loading=True,
        modal_generation=state.modal_generation + 1,
    )


def modal_image_settled(state: ViewState, generation: int) -> ViewState:
    """Clear the spinner for the image load that belongs to ``generation``."""
    if generation != state.modal_generation:
        return state
    return replace(state, modal_loading=False)


def modal_closed(state: ViewState) -> ViewState:
    return replace(state, show_modal=False)


def modal_cleared(state: ViewState, generation: int) -> ViewState:
    """Drop the selected photo once the exit transition is over.

    A modal reopened in the meantime owns the selection and is left alone.
    """
    if generation != state.modal_generation or state.show_modal:
        return state
    return replace(state, selected_photo=None, modal_loading=False)
