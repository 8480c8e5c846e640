"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photo_gallery.adapters.browser_navigator import SystemBrowserNavigator
from photo_gallery.adapters.file_state_storage import FileStateStorage
from photo_gallery.adapters.image_loader import HttpxImageLoader
from photo_gallery.adapters.listing_client import HttpxPhotoListingClient
from photo_gallery.adapters.token_exchange import (
    DemoTokenExchanger,
    HttpxTokenExchanger,
    TokenExchanger,
)
from photo_gallery.adapters.upload_client import HttpxStorageUploadClient
from photo_gallery.config import Settings
from photo_gallery.services.gallery import GalleryService
from photo_gallery.services.session_store import SessionStore
from photo_gallery.services.uploads import UploadPipeline
from photo_gallery.services.view_state import ViewStateController


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    navigator: SystemBrowserNavigator
    session_store: SessionStore
    gallery_service: GalleryService
    upload_pipeline: UploadPipeline
    view_controller: ViewStateController
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    navigator = SystemBrowserNavigator(location=resolved_settings.redirect_uri)
    token_exchanger: TokenExchanger
    hosted_exchanger: HttpxTokenExchanger | None = None
    if resolved_settings.token_exchange == "hosted":
        hosted_exchanger = HttpxTokenExchanger.create(
            token_url=resolved_settings.token_url,
            client_id=resolved_settings.cognito_client_id,
            redirect_uri=resolved_settings.redirect_uri,
        )
        token_exchanger = hosted_exchanger
    else:
        token_exchanger = DemoTokenExchanger()
    session_store = SessionStore(
        settings=resolved_settings,
        storage=FileStateStorage.create(resolved_settings.state_file),
        navigator=navigator,
        token_exchanger=token_exchanger,
    )
    listing_client = HttpxPhotoListingClient.create(
        resolved_settings.api_photos_endpoint
    )
    upload_client = HttpxStorageUploadClient.create()
    image_loader = HttpxImageLoader.create()
    gallery_service = GalleryService(listing_client)
    upload_pipeline = UploadPipeline(
        upload_client=upload_client,
        upload_endpoint=resolved_settings.api_upload_endpoint,
        poll_interval_seconds=resolved_settings.processing_poll_seconds,
        expected_processing_seconds=resolved_settings.processing_expected_seconds,
    )
    view_controller = ViewStateController(
        session_store=session_store,
        gallery_service=gallery_service,
        upload_pipeline=upload_pipeline,
        image_loader=image_loader,
    )

    async def close_resources() -> None:
        await view_controller.close()
        await listing_client.close()
        await upload_client.close()
        await image_loader.close()
        if hosted_exchanger is not None:
            await hosted_exchanger.close()

    return AppContainer(
        settings=resolved_settings,
        navigator=navigator,
        session_store=session_store,
        gallery_service=gallery_service,
        upload_pipeline=upload_pipeline,
        view_controller=view_controller,
        close_resources=close_resources,
    )
