# Overview: Client for the external image host (Cloudflare Images); upload, delete and variant URLs.

"""
Cloudflare Images client.

The console never serves image bytes itself. Uploaded files are forwarded to
Cloudflare Images and displayed through the delivery URL template:

    https://imagedelivery.net/<account hash>/<image id>/<variant>

VARIANTS maps the console's variant names to the variant names configured on
the Cloudflare account ("original" is served as "public").

Every failure talking to the host (transport error, non-2xx, success=false)
is raised as ImageHostError.
"""
from __future__ import annotations

import json

import httpx


CF_IMAGES_API_BASE = "https://api.cloudflare.com/client/v4/accounts/{account_id}/images/v1"
CF_DELIVERY_BASE = "https://imagedelivery.net"

VARIANTS = {
    "thumbnail": "thumbnail",  # 150x150
    "small": "small",          # 400px width
    "medium": "medium",        # 800px width
    "large": "large",          # 1200px width
    "original": "public",
}


class ImageHostError(Exception):
    """The image host returned an error or was unreachable."""


class ImageHostNotConfiguredError(ImageHostError):
    """Account id / API token missing from configuration."""


class CloudflareImagesClient:
    def __init__(
        self,
        account_id: str | None,
        api_token: str | None,
        delivery_hash: str | None,
        *,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        self.account_id = account_id
        self.api_token = api_token
        self.delivery_hash = delivery_hash
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_config(cls, config) -> "CloudflareImagesClient":
        return cls(
            config.get("CLOUDFLARE_ACCOUNT_ID"),
            config.get("CLOUDFLARE_API_TOKEN"),
            config.get("CLOUDFLARE_IMAGES_HASH"),
            timeout=config.get("IMAGE_HOST_TIMEOUT_SECONDS", 30.0),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.account_id and self.api_token)

    def _api_base(self) -> str:
        if not self.is_configured:
            raise ImageHostNotConfiguredError("Cloudflare Images is not configured")
        return CF_IMAGES_API_BASE.format(account_id=self.account_id)

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_token}"}

    def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        metadata: dict | None = None,
    ) -> dict:
        """
        Upload one image. Returns the host's image record ({"id", "filename",
        "uploaded", "variants", ...}).
        """
        form = {}
        if metadata:
            form["metadata"] = json.dumps(metadata)

        try:
            response = self._client.post(
                self._api_base(),
                headers=self._headers(),
                files={"file": (filename, data, content_type)},
                data=form,
            )
        except httpx.HTTPError as e:
            raise ImageHostError(f"Image upload failed: {e}") from e

        if response.status_code >= 400:
            raise ImageHostError(f"Image upload failed: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ImageHostError("Image upload failed: malformed response") from e

        if not body.get("success"):
            errors = body.get("errors") or []
            message = errors[0].get("message") if errors and isinstance(errors[0], dict) else None
            raise ImageHostError(f"Image upload failed: {message or 'unknown error'}")

        result = body.get("result") or {}
        if not result.get("id"):
            raise ImageHostError("Image upload failed: response carried no image id")
        return result

    def delete(self, image_id: str) -> bool:
        """
        Delete one image. Returns the host's success flag; a non-2xx answer is
        reported as False rather than raised.
        """
        try:
            response = self._client.delete(
                f"{self._api_base()}/{image_id}",
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise ImageHostError(f"Image delete failed: {e}") from e

        if response.status_code >= 400:
            return False

        try:
            return bool(response.json().get("success"))
        except ValueError:
            return False

    def image_url(self, image_id: str, variant: str = "public") -> str:
        """Delivery URL for a host variant name; empty when the hash is not configured."""
        if not self.delivery_hash:
            return ""
        return f"{CF_DELIVERY_BASE}/{self.delivery_hash}/{image_id}/{variant}"

    def variant_url(self, image_id: str, variant: str) -> str:
        """Delivery URL for one of the console's named VARIANTS."""
        if variant not in VARIANTS:
            raise ValueError(f"Unknown image variant: {variant}")
        return self.image_url(image_id, VARIANTS[variant])

    def variants(self, image_id: str) -> dict:
        return {name: self.image_url(image_id, cf_name) for name, cf_name in VARIANTS.items()}
