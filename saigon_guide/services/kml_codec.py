"""Convert between KML text, ElementTree documents and location records."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterator, Mapping

from ..core import Coordinates, LocationRecord, ParseError
from ..core.categories import resolve_category
from ..utils import format_coordinates, format_number, parse_coordinate_text
from .description import extract_description_fields

__all__ = [
    "KML_NAMESPACE",
    "UNNAMED_LOCATION",
    "parse",
    "encode",
    "decode",
    "decode_tree",
    "decode_placemark",
    "iter_placemarks",
    "placemark_coordinates",
    "build_placemark",
    "set_extended_data",
    "extended_data_values",
    "format_field_value",
    "qualified",
    "local_name",
    "empty_document",
]

logger = logging.getLogger(__name__)

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
UNNAMED_LOCATION = "Unnamed Location"

ET.register_namespace("", KML_NAMESPACE)
ET.register_namespace("gx", "http://www.google.com/kml/ext/2.2")
ET.register_namespace("atom", "http://www.w3.org/2005/Atom")


def parse(kml_text: str) -> ET.Element:
    """Parse ``kml_text`` and return the root element."""

    try:
        return ET.fromstring(kml_text)
    except ET.ParseError as exc:
        raise ParseError(
            "KML document is not well-formed XML",
            details={"reason": str(exc)},
        ) from exc


def encode(root: ET.Element) -> str:
    """Serialize ``root`` back to UTF-8 KML text with an XML declaration."""

    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def decode(kml_text: str) -> list[LocationRecord]:
    """Parse ``kml_text`` and return its placemarks as records, in document order."""

    return decode_tree(parse(kml_text))


def decode_tree(root: ET.Element) -> list[LocationRecord]:
    records: list[LocationRecord] = []
    skipped = 0
    for placemark in iter_placemarks(root):
        record = decode_placemark(placemark)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.debug("Skipped %s placemark(s) without valid coordinates", skipped)
    return records


def iter_placemarks(root: ET.Element) -> Iterator[ET.Element]:
    if local_name(root.tag) == "Placemark":
        yield root
    yield from root.iterfind(".//{*}Placemark")


def placemark_coordinates(placemark: ET.Element) -> Coordinates | None:
    """Return the point coordinates of ``placemark``, or ``None`` when unusable."""

    parsed = parse_coordinate_text(_text(placemark, "./{*}Point/{*}coordinates"))
    if parsed is None:
        return None
    lat, lng = parsed
    return Coordinates(lat=lat, lng=lng)


def decode_placemark(placemark: ET.Element) -> LocationRecord | None:
    coordinates = placemark_coordinates(placemark)
    if coordinates is None:
        return None

    name = (_text(placemark, "./{*}name") or "").strip() or UNNAMED_LOCATION

    description_node = placemark.find("./{*}description")
    raw_description = "".join(description_node.itertext()).strip() if description_node is not None else ""
    fields = extract_description_fields(raw_description)

    record = LocationRecord(
        name=name,
        coordinates=coordinates,
        description=fields.description,
        phone_number=fields.phone_number,
        rating=fields.rating,
        description_url=fields.description_url,
    )

    extended = extended_data_values(placemark)
    if "address" in extended:
        record.address = extended["address"]
    if "phoneNumber" in extended:
        record.phone_number = extended["phoneNumber"]
    if "descriptionUrl" in extended:
        record.description_url = extended["descriptionUrl"]
    if "blogSlug" in extended:
        record.blog_slug = extended["blogSlug"]
    if extended.get("rating"):
        try:
            record.rating = float(extended["rating"])
        except ValueError:
            logger.debug("Ignoring non-numeric rating %r on %s", extended["rating"], name)
    record.category = resolve_category(extended.get("category"), record.description.lower())
    return record


def build_placemark(root: ET.Element, record: LocationRecord) -> ET.Element:
    """Create a ``Placemark`` for ``record`` in the namespace used by ``root``."""

    placemark = ET.Element(qualified(root, "Placemark"))
    ET.SubElement(placemark, qualified(root, "name")).text = record.name
    ET.SubElement(placemark, qualified(root, "description")).text = record.description or ""

    extended = ET.SubElement(placemark, qualified(root, "ExtendedData"))
    set_extended_data(root, extended, record.structured_fields())

    point = ET.SubElement(placemark, qualified(root, "Point"))
    ET.SubElement(point, qualified(root, "coordinates")).text = format_coordinates(
        record.coordinates.lat, record.coordinates.lng
    )
    return placemark


def set_extended_data(root: ET.Element, extended: ET.Element, values: Mapping[str, object]) -> None:
    """Write ``values`` into ``extended``, reusing existing ``Data`` entries.

    ``None`` values are skipped; empty strings are stored as empty values.
    """

    existing = {
        data.get("name"): data
        for data in extended.findall("./{*}Data")
        if data.get("name")
    }
    for key, value in values.items():
        if value is None:
            continue
        data = existing.get(key)
        if data is None:
            data = ET.SubElement(extended, qualified(root, "Data"), name=key)
            existing[key] = data
        value_node = data.find("./{*}value")
        if value_node is None:
            value_node = ET.SubElement(data, qualified(root, "value"))
        value_node.text = format_field_value(value)


def format_field_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def qualified(root: ET.Element, tag: str) -> str:
    """Return ``tag`` in the namespace of ``root`` (if it has one)."""

    if root.tag.startswith("{"):
        namespace = root.tag[1:].split("}", 1)[0]
        return f"{{{namespace}}}{tag}"
    return tag


def empty_document(name: str = "Saigon Guide") -> str:
    """Return a KML skeleton with an empty ``Document``."""

    kml = ET.Element(f"{{{KML_NAMESPACE}}}kml")
    document = ET.SubElement(kml, f"{{{KML_NAMESPACE}}}Document")
    ET.SubElement(document, f"{{{KML_NAMESPACE}}}name").text = name
    return encode(kml)


def extended_data_values(placemark: ET.Element) -> dict[str, str]:
    data: dict[str, str] = {}
    extended = placemark.find("./{*}ExtendedData")
    if extended is None:
        return data
    for element in extended.findall("./{*}Data"):
        key = element.get("name")
        if key and key not in data:
            data[key] = (_text(element, "./{*}value") or "").strip()
    return data


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _text(node: ET.Element, selector: str) -> str | None:
    found = node.find(selector)
    return (found.text or None) if found is not None else None
