"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for foreign keys and create_all() to work correctly.
"""

from models.base import Base
from models.user import User
from models.user_session import UserSession
from models.password_reset_token import PasswordResetToken
from models.address import Address
from models.category import Category
from models.product import Product, ProductImage, product_categories
from models.productVariant import ProductVariant
from models.inventory import Inventory
from models.shipping_method import ShippingMethod
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.payment_transaction import PaymentTransaction
from models.webhook_event import WebhookEvent

__all__ = [
    'Base',
    'User',
    'UserSession',
    'PasswordResetToken',
    'Address',
    'Category',
    'Product',
    'ProductImage',
    'product_categories',
    'ProductVariant',
    'Inventory',
    'ShippingMethod',
    'Cart',
    'CartItem',
    'Order',
    'OrderItem',
    'PaymentTransaction',
    'WebhookEvent',
]
