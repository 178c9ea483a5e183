"""REST API blueprint."""

from __future__ import annotations

import hmac
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from ..core import LocationRecord, coordinates_from_payload
from ..services import LocationStore

api_bp = Blueprint("api", __name__)

ADMIN_HEADER = "X-Admin-Password"


def admin_required(view):
    """Reject the request unless it carries the configured admin password."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_PASSWORD")
        if expected:
            supplied = request.headers.get(ADMIN_HEADER, "")
            if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
                return jsonify({"error": "Invalid admin password"}), 401
        return view(*args, **kwargs)

    return wrapper


@api_bp.errorhandler(ValueError)
def handle_bad_request(exc: ValueError):
    return jsonify({"error": str(exc)}), 400


@api_bp.get("/locations")
def list_locations():
    records = _store().list_locations()
    return jsonify([record.as_dict() for record in records])


@api_bp.post("/add-location")
@admin_required
def add_location():
    record = LocationRecord.from_dict(_json_body())
    return jsonify(_store().add_location(record).as_dict())


@api_bp.post("/update-location")
@admin_required
def update_location():
    record = LocationRecord.from_dict(_json_body())
    return jsonify(_store().update_location(record).as_dict())


@api_bp.post("/delete-location")
@admin_required
def delete_location():
    coordinates = coordinates_from_payload(_json_body())
    return jsonify(_store().delete_location(coordinates).as_dict())


@api_bp.post("/bulk-delete-locations")
@admin_required
def bulk_delete_locations():
    targets = [coordinates_from_payload(item) for item in _locations_field(_json_body())]
    return jsonify(_store().bulk_delete_locations(targets).as_dict())


@api_bp.post("/bulk-update-locations")
@admin_required
def bulk_update_locations():
    payload = _json_body()
    targets = [coordinates_from_payload(item) for item in _locations_field(payload)]
    result = _store().bulk_update_locations(targets, payload.get("updates") or {})
    return jsonify(result.as_dict())


@api_bp.post("/save-kml")
@admin_required
def save_kml():
    kml = _json_body().get("kml")
    if not isinstance(kml, str) or not kml.strip():
        raise ValueError("Field 'kml' is required")
    return jsonify(_store().replace_document(kml).as_dict())


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return payload


def _locations_field(payload: dict) -> list:
    locations = payload.get("locations")
    if not isinstance(locations, list):
        raise ValueError("Field 'locations' must be a list")
    return locations


def _store() -> LocationStore:
    return current_app.extensions["location_store"]
