# Overview: Flask API route for photo compression.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import image_service
from ..services.image_service import ImageDecodeError, ImageReadError


photos_bp = Blueprint("photos", __name__, url_prefix="/api/photos")


@photos_bp.post("/compress")
@require_auth
@require_capability(Capability.COMPRESS_PHOTOS)
def compress_photos_route():
    """
    Compress uploaded photos for a report submission.

    Multipart field "photos" (repeatable). Returns the data URIs in upload
    order. One unreadable or undecodable file fails the whole request.
    """
    files = request.files.getlist("photos")
    if not files:
        return jsonify({"success": False, "error": "photos is required"}), 400

    try:
        photos = image_service.compress_images(file.stream for file in files)
    except ImageDecodeError as e:
        return jsonify({"success": False, "error": str(e)}), 422
    except ImageReadError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Photo compression failed")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "photos": photos}), 200
