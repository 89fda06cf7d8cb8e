"""Pytest configuration for UI backend tests."""
import base64
import sys
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Add backend root to path so imports work
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

from app.main import create_app  # noqa: E402
from pfp_rotator.config import BackendConfig  # noqa: E402
from pfp_rotator.rotation import Ack  # noqa: E402
from pfp_rotator.variations import FilterStrategy, VariationProducer  # noqa: E402


def png_bytes(width: int = 40, height: int = 40) -> bytes:
    """Small colorful PNG usable as a base photo."""
    img = Image.new("RGB", (width, height))
    for x in range(width):
        for y in range(height):
            img.putpixel((x, y), (x * 6 % 256, y * 6 % 256, 128))
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def base_photo() -> bytes:
    return png_bytes()


@pytest.fixture
def base_photo_data_url(base_photo) -> str:
    return "data:image/png;base64," + base64.b64encode(base_photo).decode("ascii")


@pytest.fixture
def backend_config(tmp_path) -> BackendConfig:
    """Local-mode config rooted in a temp dir, scheduler not autostarted."""
    return BackendConfig(
        storage_path=tmp_path / "generated-images",
        base_photo_dir=tmp_path / "base-pfp",
        temp_dir=tmp_path / "temp",
        local_mode=True,
        backend_url="http://testserver",
        browser_profile_dir=tmp_path / "profile",
        scheduler_autostart=False,
    )


@pytest.fixture
def fake_tabs():
    tabs = AsyncMock()
    tabs.find_or_open.return_value = "tab"
    return tabs


@pytest.fixture
def fake_dispatcher():
    dispatcher = AsyncMock()
    dispatcher.send.return_value = Ack()
    return dispatcher


@pytest.fixture
def app(backend_config, fake_tabs, fake_dispatcher):
    """Backend app with small local variations and a fake browser."""
    return create_app(
        backend_config,
        producer=VariationProducer(FilterStrategy(size=32)),
        tabs=fake_tabs,
        dispatcher=fake_dispatcher,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
