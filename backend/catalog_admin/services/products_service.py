# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products Service

Persistence for the products table and its image / translation rows.
Callers hand in payloads already produced by product_form.reconcile_product_form
(create / update) or by image_list helpers (image changes); this module only
writes them.

Every database failure surfaces as CatalogBackendError; a missing product as
RecordNotFoundError; a user-supplied slug that is taken as ConflictError.
A slug derived from the product name is suffixed until it is free.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Product, ProductImage, ProductTranslation
from ..validation import ConflictError
from .catalog_backend import CatalogBackendError, RecordNotFoundError, backend_call
from ..timestamps import now_utc, parse_timestamp

PRODUCT_MUTABLE_FIELDS = {"name", "description", "slug", "price", "category", "stock_quantity", "is_active"}
SLUG_MAX_LENGTH = Product.__table__.c.slug.type.length


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _apply_translations(p: Product, translations: list[dict]) -> None:
    by_language = {t.language: t for t in p.translations}
    keep = set()
    for entry in translations:
        language = entry["language"]
        keep.add(language)
        row = by_language.get(language)
        if row is None:
            row = ProductTranslation(language=language)
            p.translations.append(row)
        row.name = entry["name"]
        row.description = entry.get("description")

    for language, row in by_language.items():
        if language not in keep:
            p.translations.remove(row)


def _apply_images(p: Product, images: list[dict], primary_image_id: str | None) -> None:
    by_id = {img.id: img for img in p.images}
    rows = []
    for position, image in enumerate(images):
        row = by_id.pop(image["id"], None)
        if row is None:
            row = ProductImage(id=image["id"])
            row.created_at = parse_timestamp(image.get("created_at")) or now_utc()
        row.position = position
        row.url = image.get("url") or ""
        row.host_id = image.get("host_id")
        row.is_primary = bool(image.get("is_primary"))
        row.alt = image.get("alt") or ""
        rows.append(row)

    p.images = rows
    p.primary_image_id = primary_image_id


def _get_product_row(product_id: int) -> Product:
    with backend_call("Product lookup"):
        p = db.session.get(Product, product_id)
    if p is None:
        raise RecordNotFoundError(f"Product {product_id} not found")
    return p


def _slug_taken(slug: str, product_id: int | None = None) -> bool:
    with backend_call("Slug lookup"):
        query = db.session.query(Product.id).filter(Product.slug == slug)
        if product_id is not None:
            query = query.filter(Product.id != product_id)
        return query.first() is not None


def _resolve_slug(payload: dict, product_id: int | None = None) -> str | None:
    """
    A slug the user typed must be free (ConflictError otherwise). A slug
    derived from the name gets the first free "-2", "-3", ... suffix.
    """
    slug = payload.get("slug")
    if not slug or not _slug_taken(slug, product_id):
        return slug
    if not payload.get("slug_derived"):
        raise ConflictError("Slug already exists.")

    n = 2
    while True:
        suffix = f"-{n}"
        candidate = slug[:SLUG_MAX_LENGTH - len(suffix)] + suffix
        if not _slug_taken(candidate, product_id):
            return candidate
        n += 1


def _commit(action: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if "slug" in str(e.orig).lower():
            raise ConflictError("Slug already exists.") from e
        raise CatalogBackendError(f"{action} failed") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise CatalogBackendError(f"{action} failed") from e


def list_products() -> list[dict]:
    """All products, newest first."""
    with backend_call("Product listing"):
        products = (
            db.session.query(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )
        return [p.to_dict() for p in products]


def get_product(product_id: int) -> dict:
    return _get_product_row(product_id).to_dict()


def create_product(*, payload: dict) -> dict:
    """
    Insert a product from a reconciled form payload (no id; the database
    assigns one).

    Raises:
        ConflictError: user-supplied slug already used by another product
        CatalogBackendError: database failure
    """
    slug = _resolve_slug(payload)

    p = Product()
    apply_product_patch(p, payload)
    p.slug = slug
    _apply_translations(p, payload.get("translations") or [])
    _apply_images(p, payload.get("images") or [], payload.get("primary_image_id"))

    db.session.add(p)
    _commit("Product insert")
    return p.to_dict()


def update_product(*, product_id: int, payload: dict) -> dict:
    """
    Overwrite a product with a reconciled form payload.

    Raises:
        RecordNotFoundError: no product with that id
        ConflictError: user-supplied slug already used by another product
        CatalogBackendError: database failure
    """
    p = _get_product_row(product_id)
    slug = _resolve_slug(payload, product_id)
    apply_product_patch(p, payload)
    p.slug = slug
    _apply_translations(p, payload.get("translations") or [])
    _apply_images(p, payload.get("images") or [], payload.get("primary_image_id"))
    _commit("Product update")
    return p.to_dict()


def replace_images(*, product_id: int, images: list[dict], primary_image_id: str | None) -> dict:
    """Persist a new image list / primary image for a saved product."""
    p = _get_product_row(product_id)
    _apply_images(p, images, primary_image_id)
    _commit("Product image update")
    return p.to_dict()


def delete_product(*, product_id: int) -> dict:
    """
    Hard-delete a product and its image / translation rows.

    Returns the deleted product's dict. Images stay on the image host.
    """
    p = _get_product_row(product_id)
    snapshot = p.to_dict()
    db.session.delete(p)
    _commit("Product delete")
    return snapshot
