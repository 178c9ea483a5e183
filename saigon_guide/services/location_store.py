"""Read-modify-write operations over the KML location file."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, Mapping

from ..config import StoreConfig
from ..core import (
    CATEGORIES,
    STRUCTURED_FIELDS,
    Coordinates,
    LocationRecord,
    NoMatchesError,
    NotFoundError,
    OperationResult,
    ParseError,
)
from ..utils import ensure_directory
from . import kml_codec
from .geocoding import ReverseGeocoder
from .locks import WriterLock, build_writer_lock, no_lock
from .storage import KmlFileStorage

logger = logging.getLogger(__name__)


def find_placemark(root: ET.Element, coordinates: Coordinates) -> ET.Element:
    """Return the first placemark at ``coordinates``.

    Raises :class:`NotFoundError` when nothing matches.
    """

    for placemark in kml_codec.iter_placemarks(root):
        current = kml_codec.placemark_coordinates(placemark)
        if current is not None and current.matches(coordinates):
            return placemark
    raise NotFoundError(
        "Location not found",
        details={"coordinates": coordinates.as_dict()},
    )


def remove_placemark(root: ET.Element, placemark: ET.Element) -> None:
    for parent in root.iter():
        for child in parent:
            if child is placemark:
                parent.remove(child)
                return
    raise NotFoundError("Placemark is not part of this document")


def document_element(root: ET.Element) -> ET.Element:
    if kml_codec.local_name(root.tag) == "Document":
        return root
    document = root.find(".//{*}Document")
    if document is None:
        raise ParseError("No Document element found in KML")
    return document


def validate_field_updates(field_updates: Mapping[str, object]) -> dict[str, object]:
    """Return the non-``None`` entries of ``field_updates``.

    Only the ExtendedData keys are accepted and ``category`` must be one of the
    known categories.
    """

    if not isinstance(field_updates, Mapping):
        raise ValueError("updates must be a JSON object")
    unknown = sorted(set(field_updates) - set(STRUCTURED_FIELDS))
    if unknown:
        raise ValueError(f"Unsupported update field(s): {', '.join(unknown)}")
    updates = {key: value for key, value in field_updates.items() if value is not None}
    category = updates.get("category")
    if category is not None and category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category!r}")
    if "rating" in updates:
        try:
            updates["rating"] = float(updates["rating"])  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("Field 'rating' must contain a numeric value") from exc
    return updates


class LocationStore:
    """Stateless location operations backed by a single KML file.

    Every call re-reads and re-parses the file, mutates its own tree and
    rewrites the file in full. Nothing is cached between calls.
    """

    def __init__(self, storage: KmlFileStorage, *, writer_lock: WriterLock | None = None):
        self.storage = storage
        self.writer_lock = writer_lock or no_lock

    @classmethod
    def from_config(cls, config: StoreConfig) -> "LocationStore":
        storage = KmlFileStorage(
            config.kml_path,
            encoding=config.encoding,
            atomic=config.atomic_writes,
        )
        return cls(storage, writer_lock=build_writer_lock(config))

    def initialize(self, name: str = "Saigon Guide") -> bool:
        """Create an empty KML file when none exists; return whether one was created."""

        with self.writer_lock():
            if self.storage.exists():
                return False
            ensure_directory(self.storage.path.parent)
            self.storage.write(kml_codec.empty_document(name))
        logger.info("Created empty KML document at %s", self.storage.path)
        return True

    def list_locations(self) -> list[LocationRecord]:
        return kml_codec.decode(self.storage.read())

    def add_location(self, record: LocationRecord) -> OperationResult:
        with self.writer_lock():
            root = self._load()
            document_element(root).append(kml_codec.build_placemark(root, record))
            self._save(root)
        logger.info("Added location %s", record.name)
        return OperationResult()

    def update_location(self, record: LocationRecord) -> OperationResult:
        """Replace name, description and ExtendedData of the matching placemark.

        ``None`` fields are left out of the rebuilt ExtendedData block.
        """

        with self.writer_lock():
            root = self._load()
            placemark = self._find(root, record.coordinates)

            self._child(root, placemark, "name").text = record.name
            self._child(root, placemark, "description").text = record.description or ""

            extended = self._child(root, placemark, "ExtendedData")
            for child in list(extended):
                extended.remove(child)
            extended.text = None
            kml_codec.set_extended_data(root, extended, record.structured_fields())

            self._save(root)
        logger.info("Updated location %s", record.name)
        return OperationResult()

    def delete_location(self, coordinates: Coordinates) -> OperationResult:
        with self.writer_lock():
            root = self._load()
            placemark = self._find(root, coordinates)
            remove_placemark(root, placemark)
            self._save(root)
        logger.info("Deleted location at %s,%s", coordinates.lat, coordinates.lng)
        return OperationResult()

    def bulk_delete_locations(self, targets: Iterable[Coordinates]) -> OperationResult:
        """Remove the first placemark matching each target; misses are skipped."""

        deleted = 0
        with self.writer_lock():
            root = self._load()
            for coordinates in targets:
                try:
                    placemark = find_placemark(root, coordinates)
                except NotFoundError:
                    logger.debug("No placemark at %s,%s", coordinates.lat, coordinates.lng)
                    continue
                remove_placemark(root, placemark)
                deleted += 1
            self._save(root)
        logger.info("Bulk delete removed %s location(s)", deleted)
        return OperationResult(deleted_count=deleted)

    def bulk_update_locations(
        self,
        targets: Iterable[Coordinates],
        field_updates: Mapping[str, object],
    ) -> OperationResult:
        """Patch the given ExtendedData fields on every placemark matching a target."""

        updates = validate_field_updates(field_updates)
        targets = list(targets)
        updated = 0
        with self.writer_lock():
            root = self._load()
            for placemark in list(kml_codec.iter_placemarks(root)):
                current = kml_codec.placemark_coordinates(placemark)
                if current is None or not any(current.matches(target) for target in targets):
                    continue
                extended = self._child(root, placemark, "ExtendedData")
                kml_codec.set_extended_data(root, extended, updates)
                updated += 1

            if updated == 0:
                raise NoMatchesError(
                    "No matching locations found",
                    details={"targets": [target.as_dict() for target in targets]},
                )
            self._save(root)
        logger.info("Bulk update changed %s location(s)", updated)
        return OperationResult(updated_count=updated)

    def enrich_addresses(self, geocoder: ReverseGeocoder) -> OperationResult:
        """Store a geocoded ``address`` on every placemark that has none.

        Placemarks without usable coordinates, or that the geocoder cannot
        resolve, are left alone. The file is rewritten only when something
        changed.
        """

        enriched = 0
        with self.writer_lock():
            root = self._load()
            for placemark in list(kml_codec.iter_placemarks(root)):
                if kml_codec.extended_data_values(placemark).get("address"):
                    continue
                coordinates = kml_codec.placemark_coordinates(placemark)
                if coordinates is None:
                    continue
                address = geocoder.lookup(coordinates)
                if not address:
                    continue
                extended = self._child(root, placemark, "ExtendedData")
                kml_codec.set_extended_data(root, extended, {"address": address})
                enriched += 1

            if enriched:
                self._save(root)
        logger.info("Added addresses to %s location(s)", enriched)
        return OperationResult(updated_count=enriched)

    def replace_document(self, kml_text: str) -> OperationResult:
        """Overwrite the whole file after checking that ``kml_text`` parses."""

        kml_codec.parse(kml_text)
        with self.writer_lock():
            self.storage.write(kml_text)
        logger.info("Replaced KML document at %s", self.storage.path)
        return OperationResult()

    def _load(self) -> ET.Element:
        return kml_codec.parse(self.storage.read())

    def _save(self, root: ET.Element) -> None:
        self.storage.write(kml_codec.encode(root))

    @staticmethod
    def _find(root: ET.Element, coordinates: Coordinates) -> ET.Element:
        try:
            return find_placemark(root, coordinates)
        except NotFoundError:
            logger.warning("No placemark at %s,%s", coordinates.lat, coordinates.lng)
            raise

    @staticmethod
    def _child(root: ET.Element, parent: ET.Element, tag: str) -> ET.Element:
        child = parent.find(f"./{{*}}{tag}")
        if child is None:
            child = ET.SubElement(parent, kml_codec.qualified(root, tag))
        return child
