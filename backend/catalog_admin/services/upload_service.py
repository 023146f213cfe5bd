# Overview: Service-layer batch image upload; validation, sequential host upload and local-preview fallback.

"""
Product image batch upload.

Flow for one batch (upload_images):
1. Each file is validated on its own (MIME allow-list, byte ceiling).
   Invalid files are reported in UploadBatchResult.rejected and skipped.
2. If existing + valid would exceed max_images, the whole batch is refused
   with LimitExceededError before anything is uploaded.
3. Valid files are uploaded one at a time, in input order. on_progress is
   called with (completed, total) after every file, failed or not.
4. A file the host refuses becomes a local-preview image (local id, data:
   URL, no host_id) and the loop continues. The failure is reported in
   UploadBatchResult.failures.
5. If the list was empty before the batch, the first host-backed image
   becomes primary.
"""
from __future__ import annotations

import base64
import os
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..timestamps import now_z
from .image_host import ImageHostError
from .image_list import add_images, set_primary
from ..validation import LimitExceededError


DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

ProgressFn = Callable[[int, int], None]


@dataclass(frozen=True)
class UploadCandidate:
    """One file selected for upload."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_file_storage(cls, storage) -> "UploadCandidate":
        """Build from a werkzeug FileStorage (request.files entry)."""
        return cls(
            filename=storage.filename or "",
            content_type=(storage.mimetype or "").lower(),
            data=storage.read(),
        )


@dataclass(frozen=True)
class FileRejection:
    filename: str
    error: str


@dataclass
class UploadBatchResult:
    images: list[dict] = field(default_factory=list)
    new_images: list[dict] = field(default_factory=list)
    primary_image_id: str | None = None
    rejected: list[FileRejection] = field(default_factory=list)
    failures: list[FileRejection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "images": self.images,
            "new_images": self.new_images,
            "primary_image_id": self.primary_image_id,
            "rejected": [{"filename": r.filename, "error": r.error} for r in self.rejected],
            "failures": [{"filename": f.filename, "error": f.error} for f in self.failures],
        }


def validate_image_file(
    candidate: UploadCandidate,
    allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> str | None:
    """Return an error message for an unacceptable file, None otherwise."""
    if candidate.content_type not in tuple(allowed_types):
        return "Only JPEG, PNG, WebP and GIF images are supported"
    if candidate.size > max_bytes:
        return f"Image must not exceed {max_bytes // (1024 * 1024)}MB"
    return None


def generate_local_id() -> str:
    return uuid.uuid4().hex


def alt_from_filename(filename: str) -> str:
    stem, _ext = os.path.splitext(os.path.basename(filename))
    return stem or filename


def local_preview_url(candidate: UploadCandidate) -> str:
    encoded = base64.b64encode(candidate.data).decode("ascii")
    return f"data:{candidate.content_type};base64,{encoded}"


def image_from_upload(candidate: UploadCandidate, host_id: str | None = None, host=None) -> dict:
    """
    Image record for a file. With host_id the URL is the host's original
    variant; without one it is a local preview of the file's bytes.
    """
    if host_id:
        url = host.variant_url(host_id, "original")
    else:
        url = local_preview_url(candidate)
    return {
        "id": generate_local_id(),
        "url": url,
        "host_id": host_id,
        "is_primary": False,
        "alt": alt_from_filename(candidate.filename),
        "created_at": now_z(),
    }


def upload_images(
    candidates: list[UploadCandidate],
    existing: list[dict],
    *,
    host,
    max_images: int = 10,
    allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
    max_bytes: int = DEFAULT_MAX_BYTES,
    on_progress: ProgressFn | None = None,
) -> UploadBatchResult:
    """
    Validate and upload a batch of files, appending the results to existing.

    Raises LimitExceededError (nothing uploaded) if the valid files would
    take the list past max_images.
    """
    allowed_types = tuple(allowed_types)
    result = UploadBatchResult(images=add_images(existing, []))

    valid: list[UploadCandidate] = []
    for candidate in candidates:
        error = validate_image_file(candidate, allowed_types, max_bytes)
        if error:
            result.rejected.append(FileRejection(candidate.filename, error))
        else:
            valid.append(candidate)

    if not valid:
        return result

    if len(existing) + len(valid) > max_images:
        raise LimitExceededError(f"A product can have at most {max_images} images")

    first_hosted_id: str | None = None
    total = len(valid)
    for completed, candidate in enumerate(valid, start=1):
        try:
            hosted = host.upload(
                candidate.filename,
                candidate.data,
                candidate.content_type,
                metadata={"productImage": True, "originalName": candidate.filename},
            )
            image = image_from_upload(candidate, hosted["id"], host)
            if first_hosted_id is None:
                first_hosted_id = image["id"]
        except ImageHostError as e:
            result.failures.append(FileRejection(candidate.filename, str(e)))
            image = image_from_upload(candidate)

        result.new_images.append(image)
        if on_progress is not None:
            on_progress(completed, total)

    images = add_images(existing, result.new_images)
    if not existing and first_hosted_id is not None:
        images = set_primary(images, first_hosted_id)
        result.primary_image_id = first_hosted_id
        result.new_images = images[len(existing):]

    result.images = images
    return result
