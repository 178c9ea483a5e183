"""Command line interface for curating the KML location file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import APP_CONFIG, GeocodingConfig, StoreConfig
from .core import LocationRecord, LocationStoreError, coordinates_from_payload
from .services import KmlFileStorage, LocationStore, ReverseGeocoder, build_writer_lock

LOGGER = logging.getLogger(__name__)


def _load_payload(args: argparse.Namespace) -> object:
    if args.json is not None:
        raw = args.json
    elif args.file is not None:
        raw = Path(args.file).read_text(encoding="utf-8")
    else:
        raw = sys.stdin.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON payload: {exc}") from exc


def _locations(payload: object) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("locations"), list):
        return payload["locations"]
    raise ValueError("Payload must be a list of locations or an object with a 'locations' list")


def _store(args: argparse.Namespace) -> LocationStore:
    config: StoreConfig = APP_CONFIG.store
    kml_path = args.kml or config.kml_path
    storage = KmlFileStorage(kml_path, encoding=config.encoding, atomic=config.atomic_writes)
    return LocationStore(storage, writer_lock=build_writer_lock(config))


def _emit(value: object) -> None:
    print(json.dumps(value, ensure_ascii=False, indent=2))


def _run(args: argparse.Namespace) -> object:
    store = _store(args)

    if args.command == "init":
        return {"success": True, "created": store.initialize(args.name)}
    if args.command == "list":
        records = store.list_locations()
        if args.category:
            records = [record for record in records if record.category == args.category]
        return [record.as_dict() for record in records]
    if args.command == "import":
        text = Path(args.source).read_text(encoding="utf-8")
        return store.replace_document(text).as_dict()
    if args.command == "enrich-addresses":
        config: GeocodingConfig = APP_CONFIG.geocoding
        geocoder = ReverseGeocoder(
            args.api_key or config.api_key or "",
            timeout=config.timeout,
            request_interval=config.request_interval,
        )
        return store.enrich_addresses(geocoder).as_dict()

    payload = _load_payload(args)
    if args.command == "add":
        return store.add_location(LocationRecord.from_dict(payload)).as_dict()  # type: ignore[arg-type]
    if args.command == "update":
        return store.update_location(LocationRecord.from_dict(payload)).as_dict()  # type: ignore[arg-type]
    if args.command == "delete":
        return store.delete_location(coordinates_from_payload(payload)).as_dict()  # type: ignore[arg-type]
    if args.command == "bulk-delete":
        targets = [coordinates_from_payload(item) for item in _locations(payload)]
        return store.bulk_delete_locations(targets).as_dict()
    if args.command == "bulk-update":
        if not isinstance(payload, dict):
            raise ValueError("Payload must be an object with 'locations' and 'updates'")
        targets = [coordinates_from_payload(item) for item in _locations(payload)]
        return store.bulk_update_locations(targets, payload.get("updates") or {}).as_dict()
    raise ValueError(f"Unknown command: {args.command}")


def _add_payload_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--json", help="JSON payload given inline")
    source.add_argument("--file", type=Path, help="Read the JSON payload from a file (defaults to stdin)")


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="saigon-guide",
        description="Manage the points of interest stored in the Saigon Guide KML file.",
    )
    parser.add_argument(
        "--kml",
        type=Path,
        help="Path to the KML file (defaults to SAIGON_GUIDE_KML_PATH)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create an empty KML file if none exists.")
    init.add_argument("--name", default="Saigon Guide", help="Document name (default: Saigon Guide)")

    listing = subparsers.add_parser("list", help="Print all locations as JSON.")
    listing.add_argument("--category", help="Only print locations in this category")

    importer = subparsers.add_parser("import", help="Replace the KML file with another KML document.")
    importer.add_argument("source", type=Path, help="KML file to copy in")

    enrich = subparsers.add_parser(
        "enrich-addresses",
        help="Reverse geocode an address for every location that has none.",
    )
    enrich.add_argument("--api-key", help="Geocoding API key (defaults to SAIGON_GUIDE_GEOCODING_API_KEY)")

    for command, help_text in (
        ("add", "Append a location."),
        ("update", "Update the location at the payload's coordinates."),
        ("delete", "Delete the location at the payload's coordinates."),
        ("bulk-delete", "Delete every listed location; missing ones are skipped."),
        ("bulk-update", "Patch fields on every listed location."),
    ):
        _add_payload_arguments(subparsers.add_parser(command, help=help_text))

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        result = _run(args)
    except ValueError as exc:
        parser.error(str(exc))
    except OSError as exc:
        parser.error(str(exc))
    except LocationStoreError as exc:
        LOGGER.error("%s", exc)
        print(json.dumps(exc.as_dict(), ensure_ascii=False), file=sys.stderr)
        return 1

    _emit(result)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
