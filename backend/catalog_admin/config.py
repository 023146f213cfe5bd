from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key. Signs the admin session cookie.
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/catalog.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///catalog.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # bcrypt cost factor for new admin passwords
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Cloudflare Images (external image host)
    CLOUDFLARE_ACCOUNT_ID = os.environ.get("CLOUDFLARE_ACCOUNT_ID")
    CLOUDFLARE_API_TOKEN = os.environ.get("CLOUDFLARE_API_TOKEN")
    CLOUDFLARE_IMAGES_HASH = os.environ.get("CLOUDFLARE_IMAGES_HASH")
    IMAGE_HOST_TIMEOUT_SECONDS = float(os.environ.get("IMAGE_HOST_TIMEOUT_SECONDS", "30"))

    # Product image limits
    MAX_PRODUCT_IMAGES = int(os.environ.get("MAX_PRODUCT_IMAGES", "10"))
    MAX_IMAGE_BYTES = 10 * 1024 * 1024
    ALLOWED_IMAGE_TYPES = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
    )
    # One full batch of maximum-size images plus form overhead
    MAX_CONTENT_LENGTH = MAX_IMAGE_BYTES * MAX_PRODUCT_IMAGES + 1024 * 1024

    # Product translations
    DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "zh")
    SUPPORTED_LANGUAGES = ("zh", "en", "ja", "ko")

    # Browser origins allowed to call the API with the session cookie
    CORS_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
        ).split(",")
        if origin.strip()
    )
