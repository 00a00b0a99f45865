"""Pytest configuration and shared fixtures.

Puts the project root on ``sys.path`` so ``import demolition_backend`` works
when tests are run from the repository root or other locations.
"""

import asyncio
import os
import sys
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage
from PIL import Image

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def image_bytes(fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format=fmt)
    return buf.getvalue()


class FakeUpload:
    """Stand-in for FastAPI's UploadFile with a controllable read delay."""

    def __init__(self, data=None, filename="photo.png", content_type="image/png", delay=0.0, error=None):
        self.data = image_bytes() if data is None else data
        self.filename = filename
        self.content_type = content_type
        self.delay = delay
        self.error = error

    async def read(self) -> bytes:
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.data


@pytest.fixture
def make_upload():
    return FakeUpload


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def fake_llm():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content="解体費用は約200万円です"))
    return llm
