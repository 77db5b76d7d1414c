"""
Shared test configuration and fixtures for the resize pipeline.
"""

import io
import logging
import os
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from app.application.pipeline.resize.adapter_bundle import ResizeAdapters
from app.infrastructure.adapters.storage_in_memory import InMemoryStorageBackend
from utils.cache_key_utils import CacheKeyDeriver

logger = logging.getLogger(__name__)

CDN_BASE_URL = "https://cdn.example.com/image-cache"


def setup_logging():
    """Configure logging for the whole test run."""
    log_dir = Path("test/test_output/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "test_run.log"

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(filename=log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Quiet noisy libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    logging.getLogger("app").setLevel(logging.DEBUG)
    logging.getLogger("test").setLevel(logging.DEBUG)

    return log_file


def pytest_configure(config):  # pylint: disable=unused-argument
    """Configure pytest for tests."""
    log_file = setup_logging()

    log = logging.getLogger("pytest")
    log.info("=" * 80)
    log.info("TEST RUN START")
    log.info("Python: %s", os.sys.version)
    log.info("Working directory: %s", os.getcwd())
    log.info("Log file: %s", log_file)
    log.info("-" * 80)


@pytest.fixture(autouse=True)
def log_test_name(request):
    """Log test name when test starts and finishes."""
    test_logger = logging.getLogger(request.node.nodeid)
    test_logger.info("Start: %s", request.node.name)
    start_time = datetime.now()

    def log_test_end():
        duration = (datetime.now() - start_time).total_seconds()
        has_rep_call = hasattr(request.node, "rep_call")
        if has_rep_call and request.node.rep_call.failed:
            test_logger.error("Failed after %.2fs", duration)
        else:
            test_logger.info("Done in %.2fs", duration)

    request.addfinalizer(log_test_end)


def make_image_bytes(
    width: int = 1000,
    height: int = 500,
    fmt: str = "PNG",
    mode: str = "RGB",
    color=(200, 30, 30),
) -> bytes:
    """Encode a solid image of the given size."""
    if mode in ("L",) and isinstance(color, tuple):
        color = color[0]
    if mode == "RGBA" and isinstance(color, tuple) and len(color) == 3:
        color = color + (128,)
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def source_png() -> bytes:
    """A 1000x500 PNG."""
    return make_image_bytes(1000, 500)


@pytest.fixture
def fake_adapters(source_png):
    """Adapters with a real in-memory store and call-counted fakes.

    - downloader.download returns the 1000x500 source PNG
    - transformer.transform returns tagged bytes and the format's MIME type
    - storage is an InMemoryStorageBackend whose methods are AsyncMock-wrapped
    """

    class Downloader:
        async def download(self, url: str) -> bytes:
            return source_png

        async def close(self) -> None:
            return None

    class Transformer:
        async def transform(self, data: bytes, *, image_format, **kwargs):
            return b"transformed:" + data[:8], image_format.content_type

        def shutdown(self) -> None:
            return None

    downloader = Downloader()
    transformer = Transformer()
    storage = InMemoryStorageBackend(base_url=CDN_BASE_URL)

    downloader.download = AsyncMock(side_effect=downloader.download)  # type: ignore
    transformer.transform = AsyncMock(side_effect=transformer.transform)  # type: ignore
    storage.exists = AsyncMock(side_effect=storage.exists)  # type: ignore
    storage.upload = AsyncMock(side_effect=storage.upload)  # type: ignore
    storage.fetch = AsyncMock(side_effect=storage.fetch)  # type: ignore

    return ResizeAdapters(
        storage=storage,
        downloader=downloader,
        transformer=transformer,
        key_deriver=CacheKeyDeriver(),
    )


@pytest.fixture
def fake_http_response():
    """Factory for dummy aiohttp responses used with a dummy session."""

    def _make(status: int = 200, body: bytes = b"", content_length="auto", chunk: int = 4):
        read = {"bytes": 0}

        class DummyContent:
            async def iter_chunked(self, n):
                for i in range(0, len(body), chunk):
                    piece = body[i : i + chunk]
                    read["bytes"] += len(piece)
                    yield piece

        class DummyResponse:
            def __init__(self):
                self.status = status
                self.content_length = len(body) if content_length == "auto" else content_length
                self.content = DummyContent()

            async def __aenter__(self):
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

        response = DummyResponse()
        return SimpleNamespace(response=response, read=read)

    return _make


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Add test result to report object."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)
