# Overview: Same-origin proxy to the image host; validates files before forwarding.

"""
Image upload proxy.

POST   /api/upload-image           multipart "file" (+ optional JSON "metadata")
DELETE /api/upload-image?id=<id>   delete by image host id

Responses are {"success": true, "data": ...} or {"success": false, "error": ...}.
The MIME allow-list and the byte ceiling are enforced before anything is
forwarded to the host.
"""

import json

from flask import Blueprint, request, jsonify, current_app
from werkzeug.exceptions import RequestEntityTooLarge

from ..decorators import require_admin
from ..extensions import get_image_host
from ..services.image_host import ImageHostError
from ..services.upload_service import UploadCandidate


uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/upload-image")


def _failure(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


@uploads_bp.errorhandler(RequestEntityTooLarge)
def request_too_large(_e):
    return _failure("Request body too large", 413)


@uploads_bp.post("")
@require_admin
def upload_image_route():
    storage = request.files.get("file")
    if storage is None:
        return _failure("No file uploaded", 400)

    candidate = UploadCandidate.from_file_storage(storage)

    if candidate.content_type not in current_app.config["ALLOWED_IMAGE_TYPES"]:
        return _failure("Unsupported file type", 400)

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    if candidate.size > max_bytes:
        return _failure(f"File exceeds the size limit ({max_bytes // (1024 * 1024)}MB)", 400)

    # Malformed metadata is dropped, not rejected
    metadata = None
    raw_metadata = request.form.get("metadata")
    if raw_metadata:
        try:
            metadata = json.loads(raw_metadata)
        except ValueError:
            metadata = None

    try:
        result = get_image_host().upload(
            candidate.filename, candidate.data, candidate.content_type, metadata=metadata
        )
    except ImageHostError as e:
        current_app.logger.exception("Failed to upload image to host")
        return _failure(str(e), 502)

    return jsonify({"success": True, "data": result}), 200


@uploads_bp.delete("")
@require_admin
def delete_image_route():
    image_id = request.args.get("id")
    if not image_id:
        return _failure("Missing image id", 400)

    try:
        success = get_image_host().delete(image_id)
    except ImageHostError as e:
        current_app.logger.exception("Failed to delete image from host")
        return _failure(str(e), 502)

    return jsonify({
        "success": success,
        "message": "Image deleted" if success else "Image delete failed",
    }), 200
