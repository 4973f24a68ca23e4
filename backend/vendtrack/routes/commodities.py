# Overview: Flask API routes for the commodity catalog; parses input and returns JSON responses.

# backend/vendtrack/routes/commodities.py
"""
Commodity catalog routes.

- Read operations require VIEW_COMMODITIES
- Write operations and imports require MANAGE_COMMODITIES

Imports accept a JSON body ({"commodityList": {...}}) or a CSV, JSON or
Excel (.xlsx) upload in the "file" field.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import commodity_service
from ..services.commodity_service import CommodityImportError
from ..services.commodity_view import COMMODITY_VIEW
from ..services.view_pipeline import ViewError
from ..validation import ConflictError, NotFoundError, ValidationError
from .query import list_payload, page_args, pick, sort_args


commodities_bp = Blueprint("commodities", __name__, url_prefix="/api/commodities")


@commodities_bp.get("")
@require_auth
@require_capability(Capability.VIEW_COMMODITIES)
def list_commodities_route():
    """
    Query params:
    - search: matches product name, code, supplier or type
    - supplier, type, productName, commodityCode: case-insensitive substrings
    - sort: "Product name" (default), "Commodity code", "Supplier", "Type",
      "Unit price", "Cost price"; direction: asc|desc
    - page (zero-based), pageSize
    """
    args = request.args
    try:
        filters = pick(args, COMMODITY_VIEW.filter_names)
        sort = sort_args(args, COMMODITY_VIEW.default_sort)
        page, page_size = page_args(args)
        result = COMMODITY_VIEW.apply(commodity_service.commodity_records(), filters, sort, page, page_size)
    except ViewError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list commodities")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify(list_payload(result, result.items)), 200


@commodities_bp.post("")
@require_auth
@require_capability(Capability.MANAGE_COMMODITIES)
def create_commodity_route():
    payload = request.get_json(silent=True) or {}
    try:
        commodity = commodity_service.create_commodity(payload)
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "commodity": commodity.to_dict()}), 201


@commodities_bp.post("/import")
@require_auth
@require_capability(Capability.MANAGE_COMMODITIES)
def import_commodities_route():
    try:
        if "file" in request.files:
            upload = request.files["file"]
            payload = commodity_service.parse_commodity_upload(upload.filename, upload.stream)
        else:
            payload = request.get_json(silent=True)
            if payload is None:
                return jsonify({"success": False, "error": "JSON body or file upload required"}), 400
        result = commodity_service.import_commodities(payload)
    except CommodityImportError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Commodity import failed")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, **result}), 200


@commodities_bp.get("/<code>")
@require_auth
@require_capability(Capability.VIEW_COMMODITIES)
def get_commodity_route(code: str):
    try:
        commodity = commodity_service.get_commodity(code)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    return jsonify({"success": True, "commodity": commodity.to_dict()}), 200


@commodities_bp.put("/<code>")
@require_auth
@require_capability(Capability.MANAGE_COMMODITIES)
def update_commodity_route(code: str):
    payload = request.get_json(silent=True) or {}
    try:
        commodity = commodity_service.update_commodity(code, payload)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "commodity": commodity.to_dict()}), 200


@commodities_bp.delete("/<code>")
@require_auth
@require_capability(Capability.MANAGE_COMMODITIES)
def delete_commodity_route(code: str):
    try:
        commodity_service.delete_commodity(code)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    return jsonify({"success": True}), 200
