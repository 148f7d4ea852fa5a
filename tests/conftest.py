import io
import os
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'pixshop' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("GENAI_DISABLED", "1")
os.environ.setdefault("DISPLAY_STORAGE_LOCAL_DIR", str(Path(tempfile.gettempdir()) / "pixshop-test-display"))
os.environ.setdefault("LOCAL_TRANSFORM_SIZE", "64")


def make_image_bytes(w=8, h=6, color=(128, 64, 32), fmt="PNG", alpha=None) -> bytes:
    if alpha is None:
        arr = np.zeros((h, w, 3), dtype=np.uint8)
        arr[:, :] = color
    else:
        arr = np.zeros((h, w, 4), dtype=np.uint8)
        arr[:, :] = (*color, alpha)
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def png_bytes():
    return make_image_bytes


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from pixshop.main import create_app

    app = create_app()
    return TestClient(app)
