# Overview: Pure helpers over a product's ordered image list.

"""
Image list management.

An image list is an ordered list of dicts shaped like ProductImage.to_dict():

    {"id", "url", "host_id", "is_primary", "alt", "created_at"}

Every function returns new lists / dicts and never mutates its input.

Display URLs: an image with a host_id is served through the image host's
variant URL; an image without one (local preview) is served from its own url.
"""
from __future__ import annotations

from typing import Callable
from urllib.parse import urlparse

from ..timestamps import parse_timestamp
from ..validation import ValidationError


# Average size used for payload estimates
ESTIMATED_IMAGE_BYTES = 500 * 1024
COMPRESS_THRESHOLD_BYTES = 5 * 1024 * 1024

# Matches ProductImage.id
MAX_IMAGE_ID_LENGTH = 64

VariantUrlFn = Callable[[str, str], str]


def primary_image(images: list[dict], primary_image_id: str | None = None) -> dict | None:
    """
    Resolve the representative image.

    Order of preference: the image whose id equals primary_image_id, the
    image flagged is_primary, the first image. An unknown primary_image_id
    falls through to the flag / first-image rules.
    """
    if not images:
        return None

    if primary_image_id:
        for image in images:
            if image.get("id") == primary_image_id:
                return image

    for image in images:
        if image.get("is_primary"):
            return image

    return images[0]


def image_display_url(image: dict, variant_url: VariantUrlFn, variant: str = "medium") -> str | None:
    if image.get("host_id"):
        return variant_url(image["host_id"], variant)
    return image.get("url")


def primary_image_url(
    images: list[dict],
    variant_url: VariantUrlFn,
    primary_image_id: str | None = None,
    variant: str = "medium",
) -> str | None:
    image = primary_image(images, primary_image_id)
    if image is None:
        return None
    return image_display_url(image, variant_url, variant)


def all_image_urls(images: list[dict], variant_url: VariantUrlFn, variant: str = "medium") -> list[str]:
    """Display URLs for a gallery; images without any URL are skipped."""
    urls = (image_display_url(image, variant_url, variant) for image in images or [])
    return [url for url in urls if url]


def thumbnail_url(image: dict, variant_url: VariantUrlFn) -> str | None:
    return image_display_url(image, variant_url, "thumbnail")


def set_primary(images: list[dict], image_id: str) -> list[dict]:
    """
    Flag exactly image_id as primary and clear the flag everywhere else.

    Raises ValidationError if image_id is not in the list.
    """
    if not any(image.get("id") == image_id for image in images):
        raise ValidationError(f"Image not found: {image_id}")
    return [{**image, "is_primary": image.get("id") == image_id} for image in images]


def add_images(existing: list[dict], new_images: list[dict]) -> list[dict]:
    return [dict(image) for image in existing] + [dict(image) for image in new_images]


def remove_image(images: list[dict], image_id: str, primary_image_id: str | None = None) -> list[dict]:
    """
    Drop image_id from the list.

    If the removed image was the primary one (by primary_image_id or by its
    is_primary flag), the new first image is promoted to primary. Removing
    the last image leaves an empty list with no primary.
    """
    removed = next((image for image in images if image.get("id") == image_id), None)
    remaining = [dict(image) for image in images if image.get("id") != image_id]

    if removed is None:
        return remaining

    was_primary = bool(removed.get("is_primary")) or (
        primary_image_id is not None and primary_image_id == image_id
    )
    if was_primary and remaining:
        return set_primary(remaining, remaining[0]["id"])
    return remaining


def reorder_images(images: list[dict], from_index: int, to_index: int) -> list[dict]:
    if not 0 <= from_index < len(images):
        raise ValidationError(f"from_index out of range: {from_index}")
    if not 0 <= to_index < len(images):
        raise ValidationError(f"to_index out of range: {to_index}")

    result = [dict(image) for image in images]
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def validate_images(images) -> list[str]:
    """
    Check every image record carries the fields the console relies on.

    Returns a list of problems (empty when the list is valid); image numbers
    in messages are 1-based.
    """
    if not isinstance(images, list):
        return ["images must be a list"]

    errors = []
    seen_ids = set()
    for n, image in enumerate(images, start=1):
        if not isinstance(image, dict):
            errors.append(f"Image {n} must be an object")
            continue
        image_id = image.get("id")
        if not image_id:
            errors.append(f"Image {n} is missing an id")
        elif not isinstance(image_id, str):
            errors.append(f"Image {n} id must be a string")
        elif len(image_id) > MAX_IMAGE_ID_LENGTH:
            errors.append(f"Image {n} id exceeds max length {MAX_IMAGE_ID_LENGTH}")
        elif image_id in seen_ids:
            errors.append(f"Image {n} duplicates id {image_id}")
        else:
            seen_ids.add(image_id)
        if not image.get("url") and not image.get("host_id"):
            errors.append(f"Image {n} is missing a url or host id")
        if not image.get("alt"):
            errors.append(f"Image {n} is missing alt text")
        if not image.get("created_at"):
            errors.append(f"Image {n} is missing created_at")
        elif not _is_timestamp(image["created_at"]):
            errors.append(f"Image {n} has an invalid created_at")
    return errors


def _is_timestamp(value) -> bool:
    try:
        return parse_timestamp(value) is not None
    except (TypeError, ValueError):
        return False


def image_alt(product_name: str, index: int, is_main: bool = False) -> str:
    if is_main:
        return f"{product_name} - main image"
    return f"{product_name} - image {index + 1}"


def is_valid_image_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def estimate_images_size(images: list[dict]) -> int:
    return len(images) * ESTIMATED_IMAGE_BYTES


def should_compress_images(images: list[dict]) -> bool:
    return estimate_images_size(images) > COMPRESS_THRESHOLD_BYTES
