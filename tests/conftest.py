from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """
    Ensure `src/` is on sys.path so tests can import `instafilter`
    without requiring an editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"
    sys.path.insert(0, str(src_root))


@pytest.fixture
def photo():
    """A small deterministic RGB gradient image."""
    from instafilter.core.data_types import ImageData

    h, w = 48, 64
    yy, xx = np.mgrid[0:h, 0:w].astype(np.float32)
    pixels = np.stack([xx / (w - 1), yy / (h - 1), 1.0 - xx / (w - 1)], axis=-1)
    return ImageData.from_numpy(pixels.astype(np.float32))
