from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import pytest

from samples import NOWHERE, PHO, REX, WORKSHOP
from saigon_guide.core import (
    Coordinates,
    LocationRecord,
    NoMatchesError,
    NotFoundError,
    ParseError,
    StorageError,
)
from saigon_guide.services import KmlFileStorage, LocationStore, kml_codec


def at(point: dict) -> Coordinates:
    return Coordinates(**point)


def names(store: LocationStore) -> list[str]:
    return [record.name for record in store.list_locations()]


def by_name(store: LocationStore, name: str) -> LocationRecord:
    return next(record for record in store.list_locations() if record.name == name)


def test_list_locations_reads_file(store: LocationStore):
    assert names(store) == ["Pho Hoa Pasteur", "Rex Hotel", "The Workshop"]


def test_add_location_appends_placemark(store: LocationStore, kml_file: Path):
    record = LocationRecord(
        name="Banh Mi Huynh Hoa",
        coordinates=Coordinates(lat=10.7716, lng=106.6928),
        description="Legendary bánh mì",
        address="26 Le Thi Rieng",
        rating=4.6,
        category="food",
        blog_slug="banh-mi-guide",
    )

    result = store.add_location(record)

    assert result.as_dict() == {"success": True}
    assert names(store)[-1] == "Banh Mi Huynh Hoa"
    assert store.list_locations()[-1] == record
    content = kml_file.read_text(encoding="utf-8")
    assert "ns0:" not in content
    assert 'xmlns="http://www.opengis.net/kml/2.2"' in content


def test_add_location_allows_duplicate_coordinates(store: LocationStore):
    store.add_location(LocationRecord(name="Pho again", coordinates=at(PHO)))

    assert [record.name for record in store.list_locations() if record.coordinates == at(PHO)] == [
        "Pho Hoa Pasteur",
        "Pho again",
    ]


def test_add_location_requires_document_element(tmp_path: Path):
    path = tmp_path / "bare.kml"
    path.write_text("<kml/>", encoding="utf-8")
    store = LocationStore(KmlFileStorage(path))

    with pytest.raises(ParseError):
        store.add_location(LocationRecord(name="Nowhere", coordinates=at(NOWHERE)))


def test_update_location_rebuilds_extended_data(store: LocationStore):
    record = LocationRecord(
        name="The Workshop Coffee",
        coordinates=at(WORKSHOP),
        description="Third wave coffee",
        address="27 Ngo Duc Ke",
        phone_number="",
        category="cafe",
    )

    store.update_location(record)

    updated = by_name(store, "The Workshop Coffee")
    assert updated.description == "Third wave coffee"
    assert updated.address == "27 Ngo Duc Ke"
    assert updated.phone_number == ""
    assert updated.rating is None
    assert updated.blog_slug is None
    assert names(store) == ["Pho Hoa Pasteur", "Rex Hotel", "The Workshop Coffee"]


def test_update_location_matches_within_tolerance(store: LocationStore):
    nearby = Coordinates(lat=PHO["lat"] + 5e-8, lng=PHO["lng"] - 5e-8)

    store.update_location(LocationRecord(name="Pho Hoa", coordinates=nearby, category="food"))

    assert names(store)[0] == "Pho Hoa"


@pytest.mark.parametrize("lat_shift, lng_shift", [(2e-7, 0.0), (0.0, 2e-7)])
def test_update_location_is_not_an_upsert(store: LocationStore, kml_file: Path, lat_shift, lng_shift):
    before = kml_file.read_bytes()
    shifted = Coordinates(lat=PHO["lat"] + lat_shift, lng=PHO["lng"] + lng_shift)

    with pytest.raises(NotFoundError):
        store.update_location(LocationRecord(name="Ghost", coordinates=shifted))

    assert kml_file.read_bytes() == before


def test_sequential_updates_last_writer_wins(store: LocationStore):
    store.update_location(LocationRecord(name="First", coordinates=at(REX)))
    store.update_location(LocationRecord(name="Second", coordinates=at(REX)))

    assert names(store)[1] == "Second"


def test_delete_location_removes_placemark(store: LocationStore):
    assert store.delete_location(at(REX)).as_dict() == {"success": True}

    assert names(store) == ["Pho Hoa Pasteur", "The Workshop"]


def test_delete_location_missing_raises(store: LocationStore, kml_file: Path):
    before = kml_file.read_bytes()

    with pytest.raises(NotFoundError):
        store.delete_location(at(NOWHERE))

    assert kml_file.read_bytes() == before


def test_delete_location_inside_folder(tmp_path: Path):
    path = tmp_path / "folders.kml"
    path.write_text(
        "<kml><Document><Folder><Placemark><name>A</name>"
        "<Point><coordinates>106.7,10.7,0</coordinates></Point></Placemark></Folder></Document></kml>",
        encoding="utf-8",
    )
    store = LocationStore(KmlFileStorage(path))

    store.delete_location(Coordinates(lat=10.7, lng=106.7))

    assert store.list_locations() == []


def test_bulk_delete_skips_missing_targets(store: LocationStore):
    result = store.bulk_delete_locations([at(PHO), at(NOWHERE), at(WORKSHOP)])

    assert result.as_dict() == {"success": True, "deletedCount": 2}
    assert names(store) == ["Rex Hotel"]


def test_bulk_delete_without_matches_still_succeeds(store: LocationStore):
    result = store.bulk_delete_locations([at(NOWHERE)])

    assert result.success is True
    assert result.deleted_count == 0
    assert len(store.list_locations()) == 3


def test_bulk_update_partial_success(store: LocationStore):
    result = store.bulk_update_locations(
        [at(PHO), at(NOWHERE), at(REX)],
        {"address": "District 1", "rating": 5, "category": "food"},
    )

    assert result.as_dict() == {"success": True, "updatedCount": 2}
    pho, rex, workshop = store.list_locations()
    assert (pho.address, pho.rating, pho.category) == ("District 1", 5.0, "food")
    assert (rex.address, rex.rating, rex.category) == ("District 1", 5.0, "food")
    assert (workshop.address, workshop.rating, workshop.category) == ("27 Ngo Duc Ke, District 1", 4.8, "cafe")


def test_bulk_update_patches_existing_data_in_place(store: LocationStore, kml_file: Path):
    store.bulk_update_locations([at(WORKSHOP)], {"rating": 3.5, "blogSlug": None})

    workshop = by_name(store, "The Workshop")
    assert workshop.rating == 3.5
    assert workshop.blog_slug == "best-coffee-saigon"
    assert kml_file.read_text(encoding="utf-8").count('<Data name="rating">') == 1


def test_bulk_update_without_matches_raises(store: LocationStore, kml_file: Path):
    before = kml_file.read_bytes()

    with pytest.raises(NoMatchesError):
        store.bulk_update_locations([at(NOWHERE)], {"category": "bar"})

    assert kml_file.read_bytes() == before


@pytest.mark.parametrize(
    "updates",
    [{"name": "Renamed"}, {"category": "museum"}, {"rating": "five"}],
)
def test_bulk_update_rejects_invalid_fields(store: LocationStore, updates):
    with pytest.raises(ValueError):
        store.bulk_update_locations([at(PHO)], updates)


def test_operations_surface_parse_errors(tmp_path: Path):
    path = tmp_path / "broken.kml"
    path.write_text("<kml><Document>", encoding="utf-8")
    store = LocationStore(KmlFileStorage(path))

    with pytest.raises(ParseError):
        store.list_locations()
    with pytest.raises(ParseError):
        store.delete_location(at(PHO))


def test_missing_file_is_a_storage_error(tmp_path: Path):
    store = LocationStore(KmlFileStorage(tmp_path / "missing.kml"))

    with pytest.raises(StorageError) as excinfo:
        store.list_locations()

    assert excinfo.value.details["path"].endswith("missing.kml")


def test_replace_document_validates_before_writing(store: LocationStore, kml_file: Path):
    before = kml_file.read_bytes()

    with pytest.raises(ParseError):
        store.replace_document("<kml><Document>")
    assert kml_file.read_bytes() == before

    store.replace_document(kml_codec.empty_document("Fresh"))
    assert store.list_locations() == []


def test_initialize_creates_file_once(tmp_path: Path):
    store = LocationStore(KmlFileStorage(tmp_path / "maps" / "new.kml", atomic=True))

    assert store.initialize() is True
    assert store.initialize() is False
    assert store.list_locations() == []


def test_mutations_run_inside_writer_lock(kml_file: Path):
    events: list[str] = []

    @contextmanager
    def recording_lock():
        events.append("acquire")
        yield
        events.append("release")

    store = LocationStore(KmlFileStorage(kml_file), writer_lock=recording_lock)
    store.list_locations()
    store.delete_location(at(REX))

    assert events == ["acquire", "release"]
