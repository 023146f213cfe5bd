# Overview: Merges an existing product (or blank defaults) with multilingual form edits into one save payload.

"""
Product form reconciliation.

The console edits a product as:
- one (name, description) pair per selected language,
- shared fields: price, category, stock_quantity, is_active, slug,
- the image list and primary_image_id.

reconcile_product_form() overlays the submitted edits on the existing record
(or blank defaults for a new product) and returns the payload that
products_service persists. Rules:
- editing keeps the record's id; creating carries no id,
- the flat name/description always come from the default language,
- the default language can never be dropped from the edited set,
- an empty slug is derived from the default-language name (slug_derived is
  then true and the service may suffix it); a slug the user set is never
  replaced,
- price >= 0, stock_quantity >= 0 (integer), default-language name required.
"""
from __future__ import annotations

import re
from decimal import Decimal

from ..models import Product
from ..validation import (
    FieldPolicy,
    ValidationError,
    check_product_rules,
    clean_fields,
)
from .image_list import primary_image, set_primary, validate_images


SHARED_FIELD_POLICY = FieldPolicy(
    model=Product,
    writable=frozenset({"price", "category", "stock_quantity", "is_active", "slug"}),
)

FORM_FIELDS = {
    "name", "description", "translations", "languages",
    "price", "category", "stock_quantity", "is_active", "slug",
    "images", "primary_image_id",
}

MAX_NAME_LENGTH = 255

_SLUG_DISALLOWED = re.compile(r"[^a-z0-9\u4e00-\u9fff\s-]")
_SLUG_WHITESPACE = re.compile(r"\s+")
_SLUG_HYPHENS = re.compile(r"-+")


def slugify(text: str | None) -> str:
    """
    URL slug from free text: lower-case, trim, keep [a-z0-9], CJK ideographs,
    whitespace and '-', turn whitespace runs into '-', collapse repeated '-',
    trim '-' at both ends.
    """
    s = (text or "").lower().strip()
    s = _SLUG_DISALLOWED.sub("", s)
    s = _SLUG_WHITESPACE.sub("-", s)
    s = _SLUG_HYPHENS.sub("-", s)
    return s.strip("-")


def blank_form(default_language: str) -> dict:
    return {
        "translations": {default_language: {"name": "", "description": ""}},
        "price": Decimal("0"),
        "category": "",
        "stock_quantity": 0,
        "is_active": True,
        "slug": "",
        "images": [],
        "primary_image_id": None,
    }


def form_from_product(product: dict, default_language: str) -> dict:
    """Editable form state for an existing product dict (Product.to_dict())."""
    translations = {
        t["language"]: {"name": t.get("name") or "", "description": t.get("description") or ""}
        for t in product.get("translations") or []
    }
    # Rows saved before translations existed only carry the flat fields
    translations.setdefault(
        default_language,
        {"name": product.get("name") or "", "description": product.get("description") or ""},
    )
    return {
        "translations": translations,
        "price": Decimal(str(product.get("price") or 0)),
        "category": product.get("category") or "",
        "stock_quantity": product.get("stock_quantity") or 0,
        "is_active": bool(product.get("is_active", True)),
        "slug": product.get("slug") or "",
        "images": [dict(img) for img in product.get("images") or []],
        "primary_image_id": product.get("primary_image_id"),
    }


def ensure_default_language(languages, default_language: str) -> list[str]:
    """Selected languages with the default language always present, first."""
    ordered = [default_language]
    for lang in languages or []:
        if lang not in ordered:
            ordered.append(lang)
    return ordered


def _parse_translations(raw) -> dict:
    """Accepts {"en": {...}} or [{"language": "en", ...}]."""
    if raw is None:
        return {}
    if isinstance(raw, list):
        parsed = {}
        for item in raw:
            if not isinstance(item, dict) or not item.get("language"):
                raise ValidationError("Each translation needs a language")
            parsed[item["language"]] = item
        return parsed
    if isinstance(raw, dict):
        for lang, item in raw.items():
            if not isinstance(item, dict):
                raise ValidationError(f"Translation for {lang} must be an object")
        return dict(raw)
    raise ValidationError("translations must be an object or a list")


def _clean_text(value, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


def _merge_translations(form: dict, payload: dict, default_language: str, supported_languages) -> dict:
    translations = {lang: dict(entry) for lang, entry in form["translations"].items()}

    edits = _parse_translations(payload.get("translations"))

    # Flat fields are the default-language entry unless translations say otherwise
    flat = {k: payload[k] for k in ("name", "description") if k in payload}
    if flat:
        edits.setdefault(default_language, {})
        edits[default_language] = {**flat, **edits[default_language]}

    for lang, entry in edits.items():
        if lang not in supported_languages:
            raise ValidationError(f"Unsupported language: {lang}")
        current = translations.get(lang, {"name": "", "description": ""})
        if "name" in entry:
            current["name"] = _clean_text(entry["name"], f"{lang} name")
        if "description" in entry:
            current["description"] = _clean_text(entry["description"], f"{lang} description")
        translations[lang] = current

    if "languages" in payload:
        languages = payload["languages"]
        if not isinstance(languages, list):
            raise ValidationError("languages must be a list")
        for lang in languages:
            if lang not in supported_languages:
                raise ValidationError(f"Unsupported language: {lang}")
        selected = ensure_default_language(languages, default_language)
    else:
        selected = ensure_default_language(list(translations), default_language)

    merged = {}
    for lang in selected:
        entry = translations.get(lang, {"name": "", "description": ""})
        if len(entry["name"]) > MAX_NAME_LENGTH:
            raise ValidationError(f"{lang} name exceeds max length {MAX_NAME_LENGTH}")
        merged[lang] = entry
    return merged


def _reconcile_images(images, primary_image_id) -> tuple[list[dict], str | None]:
    errors = validate_images(images)
    if errors:
        raise ValidationError("; ".join(errors))
    if not images:
        return [], None
    if primary_image_id is not None and not isinstance(primary_image_id, str):
        raise ValidationError("primary_image_id must be a string")

    chosen = primary_image(images, primary_image_id)
    return set_primary(images, chosen["id"]), chosen["id"]


def reconcile_product_form(
    payload: dict,
    existing: dict | None = None,
    *,
    default_language: str = "zh",
    supported_languages=("zh", "en", "ja", "ko"),
) -> dict:
    """
    Build the persistable product payload from a form submission.

    Raises ValidationError for malformed input.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(set(payload) - FORM_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    if existing is not None:
        form = form_from_product(existing, default_language)
    else:
        form = blank_form(default_language)

    shared_edits = {k: payload[k] for k in SHARED_FIELD_POLICY.writable if k in payload}
    patch = clean_fields(SHARED_FIELD_POLICY, shared_edits)
    check_product_rules(patch)
    form.update(patch)

    translations = _merge_translations(form, payload, default_language, supported_languages)
    default_entry = translations[default_language]
    if not default_entry["name"]:
        raise ValidationError(f"name is required for the default language ({default_language})")

    slug = (form.get("slug") or "").strip()
    slug_derived = not slug
    if slug_derived:
        slug = slugify(default_entry["name"])

    images, primary_id = _reconcile_images(
        payload.get("images", form["images"]),
        payload.get("primary_image_id", form["primary_image_id"]),
    )

    result = {
        "name": default_entry["name"],
        "description": default_entry["description"] or None,
        "slug": slug or None,
        "slug_derived": slug_derived,
        "price": form["price"],
        "category": (form.get("category") or "").strip() or None,
        "stock_quantity": form["stock_quantity"],
        "is_active": form["is_active"],
        "images": images,
        "primary_image_id": primary_id,
        "translations": [
            {"language": lang, "name": entry["name"], "description": entry["description"] or None}
            for lang, entry in translations.items()
        ],
    }
    if existing is not None:
        result["id"] = existing["id"]
    return result
