# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

All routes require a signed-in admin.

Listing loads every product and filters in memory (services/catalog_filter.py).
Create / update submit the whole edit form; the payload is reconciled
against the stored record before it is written.

Image routes:
- POST /images/upload            batch upload for a form that is not saved yet
- POST /<id>/images              batch upload straight onto a saved product
- PUT  /<id>/images/<img>/primary
- PUT  /<id>/images/order
- DELETE /<id>/images/<img>      local removal always happens, even if the
                                 image host refuses the delete
"""
import json

from flask import Blueprint, request, current_app, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from ..extensions import get_image_host
from ..services import products_service
from ..services.catalog_backend import CatalogBackendError, RecordNotFoundError
from ..services.catalog_filter import filter_products, list_categories
from ..services.image_host import ImageHostError
from ..services.image_list import (
    primary_image,
    primary_image_url,
    remove_image,
    reorder_images,
    set_primary,
    thumbnail_url,
    validate_images,
)
from ..services.product_form import reconcile_product_form
from ..services.upload_service import UploadCandidate, upload_images
from ..validation import ValidationError, ConflictError, LimitExceededError
from ..decorators import require_admin

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.errorhandler(RequestEntityTooLarge)
def request_too_large(_e):
    return {"error": "Request body too large"}, 413


def _with_display_urls(product: dict) -> dict:
    variant_url = get_image_host().variant_url
    images = [
        {**img, "thumbnail_url": thumbnail_url(img, variant_url)}
        for img in product.get("images") or []
    ]
    return {
        **product,
        "images": images,
        "primary_image_url": primary_image_url(
            product.get("images") or [], variant_url, product.get("primary_image_id")
        ),
    }


def _form_options() -> dict:
    return {
        "default_language": current_app.config["DEFAULT_LANGUAGE"],
        "supported_languages": tuple(current_app.config["SUPPORTED_LANGUAGES"]),
    }


def _upload_options() -> dict:
    return {
        "max_images": current_app.config["MAX_PRODUCT_IMAGES"],
        "allowed_types": current_app.config["ALLOWED_IMAGE_TYPES"],
        "max_bytes": current_app.config["MAX_IMAGE_BYTES"],
    }


def _upload_warning(result) -> str | None:
    if not result.failures:
        return None
    for failure in result.failures:
        current_app.logger.warning("Image upload fell back to local preview: %s (%s)", failure.filename, failure.error)
    return f"{len(result.failures)} image(s) could not be uploaded; local previews were kept"


def _request_candidates() -> list[UploadCandidate]:
    return [UploadCandidate.from_file_storage(f) for f in request.files.getlist("files")]


@products_bp.get("")
@require_admin
def list_products():
    """
    List products, newest first.

    Query params:
    - q: str (optional) - case-insensitive substring of name or description
    - category: str (optional) - exact category match

    Response state: "empty" (no products at all), "no_match" (nothing passes
    the filters) or "ok".
    """
    query = request.args.get("q", "")
    category = request.args.get("category", "")

    try:
        products = products_service.list_products()
    except CatalogBackendError:
        current_app.logger.exception("Failed to load products")
        return {"error": "Failed to load products, please retry"}, 502

    view = filter_products(products, query, category)
    body = view.to_dict()
    body["items"] = [_with_display_urls(p) for p in view.items]
    body["categories"] = list_categories(products)
    return body


@products_bp.get("/<int:product_id>")
@require_admin
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except CatalogBackendError:
        current_app.logger.exception("Failed to load product")
        return {"error": "Failed to load product, please retry"}, 502
    return _with_display_urls(product)


@products_bp.post("")
@require_admin
def create_product_route():
    """Create a product from the edit form."""
    payload = request.get_json(silent=True)

    try:
        reconciled = reconcile_product_form(payload, None, **_form_options())
        created = products_service.create_product(payload=reconciled)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except CatalogBackendError:
        current_app.logger.exception("Failed to create product")
        return {"error": "Failed to save product, please retry"}, 502
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return _with_display_urls(created), 201


@products_bp.put("/<int:product_id>")
@require_admin
def update_product_route(product_id: int):
    """Save the edit form over an existing product."""
    payload = request.get_json(silent=True)

    try:
        existing = products_service.get_product(product_id)
        reconciled = reconcile_product_form(payload, existing, **_form_options())
        updated = products_service.update_product(product_id=product_id, payload=reconciled)
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except CatalogBackendError:
        current_app.logger.exception("Failed to update product")
        return {"error": "Failed to save product, please retry"}, 502
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return _with_display_urls(updated), 200


@products_bp.delete("/<int:product_id>")
@require_admin
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id)
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except CatalogBackendError:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Failed to delete product, please retry"}, 502

    return {"ok": True}, 200


@products_bp.post("/images/upload")
@require_admin
def upload_form_images_route():
    """
    Upload a batch of images for a product form that may not be saved yet.

    Multipart fields:
    - files: one or more image files
    - existing: JSON list of the form's current images (optional)
    - primary_image_id: the form's current primary image (optional)
    """
    try:
        existing = json.loads(request.form.get("existing") or "[]")
    except ValueError:
        return {"error": "existing must be a JSON list of images"}, 400
    errors = validate_images(existing)
    if errors:
        return {"error": "; ".join(errors)}, 400

    candidates = _request_candidates()
    if not candidates:
        return {"error": "No files uploaded"}, 400

    try:
        result = upload_images(candidates, existing, host=get_image_host(), **_upload_options())
    except LimitExceededError as e:
        return {"error": str(e), "limit_exceeded": True}, 400
    except Exception:
        current_app.logger.exception("Failed to upload product images")
        return {"error": "Internal server error"}, 500

    body = result.to_dict()
    if result.primary_image_id is None:
        body["primary_image_id"] = request.form.get("primary_image_id") or None
    body["warning"] = _upload_warning(result)
    return body, 200


@products_bp.post("/<int:product_id>/images")
@require_admin
def upload_product_images_route(product_id: int):
    """Upload a batch of images and attach them to a saved product."""
    candidates = _request_candidates()
    if not candidates:
        return {"error": "No files uploaded"}, 400

    try:
        product = products_service.get_product(product_id)
        result = upload_images(candidates, product["images"], host=get_image_host(), **_upload_options())
        primary_id = result.primary_image_id or product["primary_image_id"]
        updated = products_service.replace_images(
            product_id=product_id, images=result.images, primary_image_id=primary_id
        )
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except LimitExceededError as e:
        return {"error": str(e), "limit_exceeded": True}, 400
    except CatalogBackendError:
        current_app.logger.exception("Failed to save product images")
        return {"error": "Failed to save images, please retry"}, 502

    summary = result.to_dict()
    return {
        "product": _with_display_urls(updated),
        "rejected": summary["rejected"],
        "failures": summary["failures"],
        "warning": _upload_warning(result),
    }, 200


@products_bp.put("/<int:product_id>/images/<image_id>/primary")
@require_admin
def set_primary_image_route(product_id: int, image_id: str):
    try:
        product = products_service.get_product(product_id)
        images = set_primary(product["images"], image_id)
        updated = products_service.replace_images(
            product_id=product_id, images=images, primary_image_id=image_id
        )
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except CatalogBackendError:
        current_app.logger.exception("Failed to set primary image")
        return {"error": "Failed to save images, please retry"}, 502

    return _with_display_urls(updated), 200


@products_bp.put("/<int:product_id>/images/order")
@require_admin
def reorder_images_route(product_id: int):
    """Move one image. Body: {"from_index": int, "to_index": int}."""
    data = request.get_json(silent=True) or {}
    from_index = data.get("from_index")
    to_index = data.get("to_index")
    if not isinstance(from_index, int) or not isinstance(to_index, int):
        return {"error": "from_index and to_index must be integers"}, 400

    try:
        product = products_service.get_product(product_id)
        images = reorder_images(product["images"], from_index, to_index)
        updated = products_service.replace_images(
            product_id=product_id, images=images, primary_image_id=product["primary_image_id"]
        )
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except CatalogBackendError:
        current_app.logger.exception("Failed to reorder images")
        return {"error": "Failed to save images, please retry"}, 502

    return _with_display_urls(updated), 200


@products_bp.delete("/<int:product_id>/images/<image_id>")
@require_admin
def delete_image_route(product_id: int, image_id: str):
    """
    Remove one image from a product.

    The image is deleted from the image host first (when it has a host id);
    the local list is updated whatever the host answers. remote_deleted and
    warning report a failed host delete.
    """
    try:
        product = products_service.get_product(product_id)
    except RecordNotFoundError:
        return {"error": "Product not found"}, 404
    except CatalogBackendError:
        current_app.logger.exception("Failed to load product")
        return {"error": "Failed to load product, please retry"}, 502

    target = next((img for img in product["images"] if img["id"] == image_id), None)
    if target is None:
        return {"error": "Image not found"}, 404

    remote_deleted = True
    if target.get("host_id"):
        try:
            remote_deleted = get_image_host().delete(target["host_id"])
        except ImageHostError:
            current_app.logger.warning("Image host delete failed for %s", target["host_id"], exc_info=True)
            remote_deleted = False

    # remove_image promotes the new first image when the primary goes
    remaining = remove_image(product["images"], image_id, product["primary_image_id"])
    primary = primary_image(remaining, product["primary_image_id"])
    primary_id = primary["id"] if primary else None

    try:
        updated = products_service.replace_images(
            product_id=product_id, images=remaining, primary_image_id=primary_id
        )
    except CatalogBackendError:
        current_app.logger.exception("Failed to remove image")
        return {"error": "Failed to save images, please retry"}, 502

    body = {"product": _with_display_urls(updated), "remote_deleted": remote_deleted}
    if not remote_deleted:
        body["warning"] = "Image removed from the list, but deleting it from the image host may have failed"
    return jsonify(body), 200
