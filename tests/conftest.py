"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from photo_gallery.adapters.browser_navigator import SystemBrowserNavigator
from photo_gallery.adapters.image_loader import ImageLoader, ImageLoadError
from photo_gallery.adapters.listing_client import PhotoListingClient
from photo_gallery.adapters.token_exchange import DemoTokenExchanger
from photo_gallery.adapters.upload_client import ProgressCallback, StorageUploadClient
from photo_gallery.config import Settings
from photo_gallery.containers import AppContainer
from photo_gallery.services.gallery import GalleryService
from photo_gallery.services.session_store import SessionStore, StateStorage
from photo_gallery.services.uploads import UploadPipeline
from photo_gallery.services.view_state import ViewStateController

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
REDIRECT_URI = "http://localhost:8000/callback"


@dataclass
class InMemoryStateStorage(StateStorage):
    """In-memory key-value storage for tests."""

    entries: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        self.entries[key] = value

    def remove(self, key: str) -> None:
        self.entries.pop(key, None)


@dataclass
class FakeClock:
    """Controllable clock."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class RecordingSleep:
    """Sleep replacement that only yields to the loop and records delays."""

    calls: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@dataclass
class FakeListingClient(PhotoListingClient):
    """Listing client returning queued payloads; the last one repeats."""

    payloads: list[object] = field(default_factory=lambda: [{"Items": []}])
    calls: int = 0

    async def fetch_listing(self) -> object:
        index = min(self.calls, len(self.payloads) - 1)
        self.calls += 1
        payload = self.payloads[index]
        if isinstance(payload, Exception):
            raise payload
        return payload


@dataclass
class FakeUploadClient(StorageUploadClient):
    """Upload client that records requests and reports full progress."""

    requests: list[dict[str, object]] = field(default_factory=list)
    status_code: int = 200

    async def put_object(
        self,
        url: str,
        content: bytes,
        content_type: str,
        token: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.requests.append(
            {
                "url": url,
                "content": content,
                "content_type": content_type,
                "token": token,
            }
        )
        if self.status_code >= 300:  # noqa: PLR2004
            request = httpx.Request("PUT", url)
            response = httpx.Response(self.status_code, request=request, text="boom")
            raise httpx.HTTPStatusError(
                "Upload rejected", request=request, response=response
            )
        if on_progress is not None and content:
            on_progress(50)
            on_progress(100)


@dataclass
class FakeImageLoader(ImageLoader):
    """Image loader that succeeds unless told to fail."""

    fail: bool = False
    loaded: list[str] = field(default_factory=list)

    async def load(self, url: str) -> None:
        self.loaded.append(url)
        await asyncio.sleep(0)
        if self.fail:
            raise ImageLoadError("Failed to decode image: truncated")


def listing_item(
    photo_id: str, metadata: dict[str, object] | None = None
) -> dict[str, object]:
    item: dict[str, object] = {
        "ImageMetadataPK": {"S": photo_id},
        "ThumbnailURL": {"S": f"https://cdn.test/thumbs/{photo_id}.jpg"},
        "OriginalImageURL": {"S": f"https://cdn.test/originals/{photo_id}.jpg"},
    }
    if metadata is not None:
        item["Metadata"] = {"M": metadata}
    return item


def listing(*photo_ids: str) -> dict[str, object]:
    return {"Items": [listing_item(photo_id) for photo_id in photo_ids]}


def persisted_session(
    expiry: datetime, username: str = "alice", token: str = "token-123"
) -> str:
    return json.dumps(
        {
            "isAuthenticated": True,
            "username": username,
            "token": token,
            "tokenExpiry": expiry.isoformat(),
            "loading": False,
        }
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cognito_domain="gallery-test",
        cognito_region="eu-west-1",
        cognito_client_id="client-123",
        cognito_user_pool_id="eu-west-1_pool",
        redirect_uri=REDIRECT_URI,
        api_photos_endpoint="https://api.test/photos/",
        api_upload_endpoint="https://api.test/bucket/",
        state_file="unused.json",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def storage() -> InMemoryStateStorage:
    return InMemoryStateStorage()


@pytest.fixture
def navigator() -> SystemBrowserNavigator:
    return SystemBrowserNavigator(location=REDIRECT_URI, opener=lambda url: True)


@pytest.fixture
def session_store(
    settings: Settings,
    storage: InMemoryStateStorage,
    navigator: SystemBrowserNavigator,
    clock: FakeClock,
    sleep: RecordingSleep,
) -> SessionStore:
    return SessionStore(
        settings=settings,
        storage=storage,
        navigator=navigator,
        token_exchanger=DemoTokenExchanger(),
        clock=clock,
        sleep=sleep,
    )


@pytest.fixture
def listing_client() -> FakeListingClient:
    return FakeListingClient()


@pytest.fixture
def upload_client() -> FakeUploadClient:
    return FakeUploadClient()


@pytest.fixture
def image_loader() -> FakeImageLoader:
    return FakeImageLoader()


@pytest.fixture
def upload_pipeline(
    settings: Settings, upload_client: FakeUploadClient, clock: FakeClock
) -> UploadPipeline:
    return UploadPipeline(
        upload_client=upload_client,
        upload_endpoint=settings.api_upload_endpoint,
        clock=clock,
    )


@pytest.fixture
def controller(
    session_store: SessionStore,
    listing_client: FakeListingClient,
    upload_pipeline: UploadPipeline,
    image_loader: FakeImageLoader,
    sleep: RecordingSleep,
) -> ViewStateController:
    return ViewStateController(
        session_store=session_store,
        gallery_service=GalleryService(listing_client),
        upload_pipeline=upload_pipeline,
        image_loader=image_loader,
        sleep=sleep,
    )


@pytest.fixture
def container(
    settings: Settings,
    navigator: SystemBrowserNavigator,
    session_store: SessionStore,
    controller: ViewStateController,
    upload_pipeline: UploadPipeline,
) -> AppContainer:
    async def close_resources() -> None:
        await controller.close()

    # The expiry watchdog runs for the whole app lifespan; it must really wait.
    session_store.sleep = asyncio.sleep
    return AppContainer(
        settings=settings,
        navigator=navigator,
        session_store=session_store,
        gallery_service=controller.gallery_service,
        upload_pipeline=upload_pipeline,
        view_controller=controller,
        close_resources=close_resources,
    )
