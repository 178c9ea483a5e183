from __future__ import annotations

from pathlib import Path

import pytest

from samples import SAMPLE_KML
from saigon_guide.services import KmlFileStorage, LocationStore


@pytest.fixture()
def kml_file(tmp_path: Path) -> Path:
    path = tmp_path / "saigon-food.kml"
    path.write_text(SAMPLE_KML, encoding="utf-8")
    return path


@pytest.fixture()
def store(kml_file: Path) -> LocationStore:
    return LocationStore(KmlFileStorage(kml_file))
