from .auth import Admin
from .catalog import Product, ProductImage, ProductTranslation

__all__ = [
    'Admin',
    'Product', 'ProductImage', 'ProductTranslation',
]
