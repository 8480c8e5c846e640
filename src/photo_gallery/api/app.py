"""FastAPI loopback application for the gallery client."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status

from photo_gallery.app_logging import configure_logging
from photo_gallery.containers import AppContainer
from photo_gallery.domain.photos import Photo
from photo_gallery.domain.uploads import SelectedFile, format_bytes
from photo_gallery.domain.view import PLACEHOLDER_IMAGE, ImageElement, ViewState


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_session(
    container: AppContainer = Depends(_get_container),
) -> None:
    """Reject gallery and upload actions while signed out."""
    if not container.session_store.session.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        await state_container.view_controller.start()
        watchdog = asyncio.create_task(
            state_container.session_store.run_expiry_watchdog(
                state_container.settings.expiry_check_seconds
            )
        )
        logger.info(
            "Gallery client started: authenticated=%s",
            state_container.session_store.session.is_authenticated,
        )
        yield
        watchdog.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watchdog
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/state")
    async def view_state(request: Request) -> dict[str, object]:
        """Return the current view snapshot."""
        return _state_payload(_get_container(request).view_controller.state)

    @app.get("/callback")
    async def auth_callback(request: Request) -> dict[str, object]:
        """Return leg of the hosted UI redirect."""
        state_container = _get_container(request)
        state_container.navigator.set_location(str(request.url))
        await state_container.session_store.restore_or_exchange()
        return _state_payload(state_container.view_controller.state)

    @app.post("/login")
    async def login(request: Request) -> dict[str, str]:
        state_container = _get_container(request)
        state_container.view_controller.sign_in()
        return {"redirect_url": state_container.navigator.current_url()}

    @app.post("/register")
    async def register(request: Request) -> dict[str, str]:
        state_container = _get_container(request)
        state_container.view_controller.register()
        return {"redirect_url": state_container.navigator.current_url()}

    @app.post("/logout")
    async def logout(request: Request) -> dict[str, object]:
        state_container = _get_container(request)
        state_container.view_controller.sign_out()
        return _state_payload(state_container.view_controller.state)

    @app.post("/photos/refresh", dependencies=[Depends(require_session)])
    async def refresh_photos(request: Request) -> dict[str, object]:
        """Manual retry of the listing fetch."""
        controller = _get_container(request).view_controller
        await controller.fetch_photos()
        return _state_payload(controller.state)

    @app.put("/uploads/{filename}", dependencies=[Depends(require_session)])
    async def upload(
        filename: str, request: Request, response: Response
    ) -> dict[str, object]:
        """Select the request body as a file and run the storage transfer."""
        controller = _get_container(request).view_controller
        controller.select_file(
            SelectedFile(
                name=filename,
                content=await request.body(),
                content_type=request.headers.get("content-type", ""),
            )
        )
        if await controller.upload():
            response.status_code = status.HTTP_202_ACCEPTED
        else:
            response.status_code = status.HTTP_502_BAD_GATEWAY
        return _state_payload(controller.state)

    @app.post("/photos/{index}/open", dependencies=[Depends(require_session)])
    async def open_photo(index: int, request: Request) -> dict[str, object]:
        controller = _get_container(request).view_controller
        controller.open_photo_modal(_photo_at(controller.state, index))
        return _state_payload(controller.state)

    @app.post(
        "/photos/{index}/thumbnail-error", dependencies=[Depends(require_session)]
    )
    async def thumbnail_error(index: int, request: Request) -> dict[str, object]:
        """Report a thumbnail that failed to render."""
        controller = _get_container(request).view_controller
        photo = _photo_at(controller.state, index)
        element = ImageElement(src=photo.thumbnail_url)
        controller.on_image_error(element, index)
        return {"src": element.src, "classes": sorted(element.classes)}

    @app.post("/modal/close")
    async def close_modal(request: Request) -> dict[str, object]:
        controller = _get_container(request).view_controller
        controller.close_photo_modal()
        return _state_payload(controller.state)

    return app


def _photo_at(state: ViewState, index: int) -> Photo:
    if not 0 <= index < len(state.photos):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return state.photos[index]


def _photo_payload(photo: Photo, broken: bool) -> dict[str, object]:
    payload = asdict(photo)
    if broken:
        payload["thumbnail_url"] = PLACEHOLDER_IMAGE
    payload["broken"] = broken
    return payload


def _state_payload(state: ViewState) -> dict[str, object]:
    """Serialize a view snapshot for the render layer."""
    selected_file = state.file_to_upload
    return {
        "is_authenticated": state.is_authenticated,
        "username": state.username,
        "auth_loading": state.auth_loading,
        "photos": [
            _photo_payload(photo, index in state.broken_thumbnails)
            for index, photo in enumerate(state.photos)
        ],
        "loading": state.loading,
        "error": state.error,
        "file_to_upload": (
            {
                "name": selected_file.name,
                "size": selected_file.size,
                "size_label": format_bytes(selected_file.size),
                "content_type": selected_file.effective_content_type,
            }
            if selected_file
            else None
        ),
        "uploading": state.uploading,
        "upload_progress": state.upload_progress,
        "upload_error": state.upload_error,
        "upload_success": state.upload_success,
        "upload_phase": state.upload_phase.value,
        "processing_image": state.processing_image,
        "processing_progress": state.processing_progress,
        "processing_message": state.processing_message,
        "show_modal": state.show_modal,
        "selected_photo": (
            asdict(state.selected_photo) if state.selected_photo else None
        ),
        "modal_loading": state.modal_loading,
    }
