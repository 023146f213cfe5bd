from __future__ import annotations

from ..extensions import db
from ..timestamps import format_z


class Product(db.Model):
    """
    Product master data.

    The flat name/description columns always mirror the default-language
    translation; ProductTranslation holds every language including the default.

    Images are an ordered list (position). primary_image_id, when set, names
    the single image flagged is_primary.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("slug", name="uq_products_slug"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    slug = db.Column(db.String(255), nullable=True)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    category = db.Column(db.String(120), nullable=True)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    primary_image_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    images = db.relationship(
        "ProductImage",
        backref="product",
        order_by="ProductImage.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    translations = db.relationship(
        "ProductTranslation",
        backref="product",
        order_by="ProductTranslation.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "slug": self.slug,
            "price": float(self.price) if self.price is not None else None,
            "category": self.category,
            "stock_quantity": self.stock_quantity,
            "is_active": self.is_active,
            "images": [img.to_dict() for img in self.images],
            "primary_image_id": self.primary_image_id,
            "translations": [t.to_dict() for t in self.translations],
            "created_at": format_z(self.created_at),
            "updated_at": format_z(self.updated_at),
        }


class ProductImage(db.Model):
    """
    One image attached to a product.

    id is assigned when the image record is produced (upload or local
    preview), before the product is saved, so it is only unique within its
    product; row_id is the table key. host_id is the image host's own
    identifier and is null for local previews.
    """
    __tablename__ = "product_images"
    __table_args__ = (
        db.UniqueConstraint("product_id", "id", name="uq_product_images_product_image"),
        db.Index("ix_product_images_product_position", "product_id", "position"),
        {"sqlite_autoincrement": True},
    )

    row_id = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(64), nullable=False)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    url = db.Column(db.Text, nullable=False)
    host_id = db.Column(db.String(128), nullable=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    alt = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "host_id": self.host_id,
            "is_primary": self.is_primary,
            "alt": self.alt,
            "created_at": format_z(self.created_at),
        }


class ProductTranslation(db.Model):
    """Localized name/description for one language of a product."""
    __tablename__ = "product_translations"
    __table_args__ = (
        db.UniqueConstraint("product_id", "language", name="uq_product_translations_product_language"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    language = db.Column(db.String(8), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "language": self.language,
            "name": self.name,
            "description": self.description,
        }
