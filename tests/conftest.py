import io
from collections.abc import Callable

import pytest
from PIL import Image

from coral.config import Settings
from coral.results import InvocationContext
from tests.mocks import InMemoryBlobStore

STAGING = "test-staging"
CDN = "test-cdn"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env_name="test",
        staging_bucket=STAGING,
        cdn_bucket=CDN,
        cdn_host="",
        namespace="galleries",
    )


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def context() -> InvocationContext:
    return InvocationContext(request_id="test-request")


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    def _make(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
        img = Image.new(mode, (width, height), color=(200, 80, 40) if mode == "RGB" else 0)
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_mpo() -> Callable[[int, int], bytes]:
    """Two-frame multi-picture JPEG, the way stereo and burst cameras write them."""
    def _make(width: int, height: int) -> bytes:
        first = Image.new("RGB", (width, height), color=(200, 80, 40))
        second = Image.new("RGB", (width, height), color=(40, 80, 200))
        buf = io.BytesIO()
        first.save(buf, format="MPO", save_all=True, append_images=[second])
        return buf.getvalue()

    return _make
