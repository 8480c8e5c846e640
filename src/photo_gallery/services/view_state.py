"""View state controller tying the session, gallery and upload services together."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

from photo_gallery.adapters.image_loader import ImageLoader, ImageLoadError
from photo_gallery.domain import view
from photo_gallery.domain.photos import Photo
from photo_gallery.domain.session import Session
from photo_gallery.domain.uploads import SelectedFile
from photo_gallery.domain.view import (
    BROKEN_IMAGE_CLASS,
    PLACEHOLDER_IMAGE,
    ImageElement,
    ViewState,
)
from photo_gallery.services.gallery import GalleryService, ListingFetchError
from photo_gallery.services.session_store import SessionStore
from photo_gallery.services.uploads import (
    NO_FILE_MESSAGE,
    UploadPipeline,
    UploadTransportError,
)

PROCESSING_COMPLETE_MESSAGE = "Image processing complete!"

_logger = logging.getLogger(__name__)

RenderListener = Callable[[ViewState], None]


@dataclass
class ViewStateController:
    """Owns the ``ViewState`` and applies one update function per action.

    Render listeners receive a new immutable snapshot after every change.
    Background work (photo fetches, processing monitor, modal timers) runs as
    tasks on the current event loop; ``wait_idle`` awaits all of them.
    """

    session_store: SessionStore
    gallery_service: GalleryService
    upload_pipeline: UploadPipeline
    image_loader: ImageLoader
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    modal_transition_seconds: float = 0.3
    completion_display_seconds: float = 2.0
    success_banner_seconds: float = 5.0
    _state: ViewState = field(default_factory=ViewState, init=False)
    _listeners: list[RenderListener] = field(default_factory=list, init=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)
    _unsubscribe_session: Callable[[], None] | None = field(default=None, init=False)

    @property
    def state(self) -> ViewState:
        return self._state

    def subscribe(self, listener: RenderListener) -> Callable[[], None]:
        """Register a render listener and return its unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: RenderListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> None:
        """Subscribe to session changes and resolve the startup session."""
        if self._unsubscribe_session is None:
            self._unsubscribe_session = self.session_store.subscribe(
                self._on_session_changed
            )
        session = self.session_store.session
        self._apply(view.session_changed, session)
        if session.is_authenticated:
            self._spawn(self.fetch_photos())
        await self.session_store.restore_or_exchange()

    # --- gallery -------------------------------------------------------------

    async def fetch_photos(self) -> None:
        """Reload the listing; also serves as the manual retry."""
        self._apply(view.fetch_started)
        generation = self._state.fetch_generation
        try:
            photos = await self.gallery_service.fetch_photos()
        except ListingFetchError as exc:
            _logger.warning("Photo listing failed: %s", exc)
            self._apply(view.fetch_failed, generation, str(exc))
        except Exception as exc:
            _logger.exception("Unexpected photo listing failure")
            self._apply(view.fetch_failed, generation, f"Failed to fetch photos: {exc}")
        else:
            self._apply(view.fetch_succeeded, generation, photos)

    def on_image_error(self, element: ImageElement, index: int) -> None:
        """Swap a broken thumbnail for the placeholder graphic."""
        _logger.error("Image loading failed for photo at index %s", index)
        element.src = PLACEHOLDER_IMAGE
        element.classes.add(BROKEN_IMAGE_CLASS)
        self._apply(view.thumbnail_broken, index)

    # --- upload --------------------------------------------------------------

    def select_file(self, file: SelectedFile | None) -> None:
        if file is not None:
            _logger.info("File selected: %s", file.name)
        self._apply(view.file_selected, file)

    async def upload(self) -> bool:
        """Transfer the selected file and start monitoring its processing.

        Returns True once the storage write succeeded; monitoring continues in
        the background.
        """
        file = self._state.file_to_upload
        if file is None:
            self._apply(view.upload_rejected, NO_FILE_MESSAGE)
            return False

        self._apply(view.upload_started)
        try:
            await self.upload_pipeline.transfer(
                file,
                token=self.session_store.session.token or None,
                on_progress=lambda percent: self._apply(
                    view.upload_progressed, percent
                ),
            )
        except UploadTransportError as exc:
            self._apply(view.upload_failed, f"Upload failed: {exc}")
            return False

        self._apply(view.upload_succeeded)
        self._spawn(self._monitor_processing())
        return True

    async def _monitor_processing(self) -> None:
        monitor = self.upload_pipeline.start_monitor(len(self._state.photos))
        self._apply(view.processing_started, self.upload_pipeline.processing_message)
        while not monitor.finished:
            await self.sleep(monitor.interval_seconds)
            monitor = monitor.tick()
            self._apply(view.processing_progressed, monitor.progress)
            # fetch_photos records every failure in the view, so polling carries on.
            await self.fetch_photos()
            monitor = monitor.observe(len(self._state.photos))
        _logger.info(
            "Processing monitor finished: elapsed=%ss photos=%s",
            monitor.elapsed,
            len(self._state.photos),
        )
        self._apply(view.processing_completed, PROCESSING_COMPLETE_MESSAGE)
        await self.sleep(self.completion_display_seconds)
        self._apply(view.processing_dismissed)
        await self.sleep(self.success_banner_seconds)
        self._apply(view.upload_success_cleared)

    # --- modal ---------------------------------------------------------------

    def open_photo_modal(self, photo: Photo) -> None:
        self._apply(view.modal_opened, photo)
        self._spawn(self._load_full_image(photo, self._state.modal_generation))

    def close_photo_modal(self) -> None:
        """Hide the modal now and drop the selection after the exit transition."""
        self._apply(view.modal_closed)
        self._spawn(self._clear_modal_later(self._state.modal_generation))

    async def _load_full_image(self, photo: Photo, generation: int) -> None:
        try:
            await self.image_loader.load(photo.url)
        except ImageLoadError:
            _logger.exception("Failed to load full-size image for modal")
        finally:
            self._apply(view.modal_image_settled, generation)

    async def _clear_modal_later(self, generation: int) -> None:
        await self.sleep(self.modal_transition_seconds)
        self._apply(view.modal_cleared, generation)

    # --- session -------------------------------------------------------------

    def sign_in(self) -> None:
        self.session_store.start_login_redirect()

    def register(self) -> None:
        self.session_store.start_register_redirect()

    def sign_out(self) -> None:
        self.session_store.logout()

    def _on_session_changed(self, session: Session) -> None:
        self._apply(view.session_changed, session)
        if session.is_authenticated:
            self._spawn(self.fetch_photos())
        elif not session.loading:
            # Photos survive while an auth exchange is still in progress.
            self._apply(view.photos_cleared)

    # --- plumbing ------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait until every background task, including ones they spawn, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Unsubscribe from the session store and cancel background work."""
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _apply(
        self,
        update: Callable[..., ViewState],
        *args: Any,
    ) -> None:
        new_state = update(self._state, *args)
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _logger.error("Background task failed", exc_info=task.exception())
