"""
Catalog-related exceptions.
"""

from .base import ShopException


class CatalogException(ShopException):
    """Base exception for catalog-related errors."""
    pass


class ProductNotFoundException(CatalogException):
    """Raised when a product is missing or not published."""

    def __init__(self, slug: str):
        super().__init__(
            "Product not found",
            details={'slug': slug}
        )
        self.slug = slug


class VariantNotFoundException(CatalogException):
    """Raised when a variant is missing or inactive."""

    def __init__(self, variant_id: str):
        super().__init__(
            "Variant not found",
            details={'variant_id': variant_id}
        )
        self.variant_id = variant_id
