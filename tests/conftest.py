import io
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")

NOW = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_backends(tmp_path, monkeypatch):
    # in-memory records are module-level; files go to a per-test directory
    from src.infrastructure.database.repositories import picture_repository

    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path / "storage"))
    picture_repository._MEM_PICTURES.clear()
    yield
    picture_repository._MEM_PICTURES.clear()


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from src.main import create_app

    return TestClient(create_app())


@pytest.fixture()
def stores():
    from src.infrastructure.api.dependencies import get_stage_stores

    return get_stage_stores()


@pytest.fixture()
def storage():
    from src.infrastructure.storage.supabase_storage import SupabaseStorage

    return SupabaseStorage(None)


@pytest.fixture()
def make_raster():
    def _make(width=400, height=300, fmt="PNG") -> bytes:
        # channel 0 encodes x, channel 1 encodes y
        ys, xs = np.indices((height, width))
        arr = np.stack([xs % 256, ys % 256, np.full_like(xs, 128)], axis=-1).astype(np.uint8)
        buf = io.BytesIO()
        Image.fromarray(arr).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture()
def make_picture():
    from src.domain.entities.picture import Box, Picture, PictureSize

    def _make(origin="flickr", name="51234", extension="png", width=400, height=300, tags=None):
        return Picture(
            origin=origin,
            name=name,
            origin_id="51234",
            extension=extension,
            creation_date=NOW,
            sizes={"size-0": PictureSize(creation_date=NOW, box=Box(0, 0, width, height))},
            tags=tags or {},
        )

    return _make


@pytest.fixture()
def make_tag():
    from src.domain.entities.picture import Box, BoxInformation, PictureTag

    def _make(box=None, size_id="size-0", name="dog"):
        info = None if box is None else BoxInformation(image_size_id=size_id, box=Box(*box))
        return PictureTag(name=name, origin="reviewer", creation_date=NOW, box_information=info)

    return _make
