"""
Custom exceptions for the Maikanwa store backend.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ShopException (base)
├── RateLimitExceededException
├── ConfigurationException
├── InvalidRequestException
├── CartException
│   ├── CartNotFoundException
│   ├── EmptyCartException
│   ├── CartItemNotFoundException
│   ├── InvalidCartStateException
│   ├── InvalidQuantityException
│   └── StockExceededException
├── CatalogException
│   ├── ProductNotFoundException
│   └── VariantNotFoundException
├── OrderException
│   ├── OrderNotFoundException
│   ├── InvalidOrderIdException
│   ├── InsufficientStockException
│   ├── InvalidOrderStateException
│   └── OrderOwnershipException
├── PaymentException
│   ├── PaymentNotFoundException
│   ├── PaymentAmountMismatchException
│   ├── PaymentCurrencyMismatchException
│   ├── PaymentGatewayException
│   ├── InvalidPaymentMethodException
│   ├── MissingPayerEmailException
│   └── InvalidWebhookSignatureException
├── ShippingException
│   ├── MissingShippingAddressException
│   └── InvalidAddressException
└── UserException
    ├── AuthenticationRequiredException
    ├── InvalidCredentialsException
    ├── AdminRequiredException
    ├── EmailAlreadyRegisteredException
    ├── InvalidResetTokenException
    └── AccountDisabledException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id)

The FastAPI exception handlers in utils/error_handler.py turn them into
``{"ok": false, "error": ...}`` responses with the matching HTTP status.
"""

from .base import ShopException, RateLimitExceededException, ConfigurationException, InvalidRequestException
from .cart import (
    CartException,
    CartNotFoundException,
    EmptyCartException,
    CartItemNotFoundException,
    InvalidCartStateException,
    InvalidQuantityException,
    StockExceededException,
)
from .catalog import CatalogException, ProductNotFoundException, VariantNotFoundException
from .order import (
    OrderException,
    OrderNotFoundException,
    InvalidOrderIdException,
    InsufficientStockException,
    InvalidOrderStateException,
    OrderOwnershipException,
)
from .payment import (
    PaymentException,
    PaymentNotFoundException,
    PaymentAmountMismatchException,
    PaymentCurrencyMismatchException,
    PaymentGatewayException,
    InvalidPaymentMethodException,
    MissingPayerEmailException,
    InvalidWebhookSignatureException,
)
from .shipping import ShippingException, MissingShippingAddressException, InvalidAddressException
from .user import (
    UserException,
    AuthenticationRequiredException,
    InvalidCredentialsException,
    AdminRequiredException,
    EmailAlreadyRegisteredException,
    InvalidResetTokenException,
    AccountDisabledException,
)

__all__ = [
    # Base
    'ShopException',
    'RateLimitExceededException',
    'ConfigurationException',
    'InvalidRequestException',

    # Cart
    'CartException',
    'CartNotFoundException',
    'EmptyCartException',
    'CartItemNotFoundException',
    'InvalidCartStateException',
    'InvalidQuantityException',
    'StockExceededException',

    # Catalog
    'CatalogException',
    'ProductNotFoundException',
    'VariantNotFoundException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InvalidOrderIdException',
    'InsufficientStockException',
    'InvalidOrderStateException',
    'OrderOwnershipException',

    # Payment
    'PaymentException',
    'PaymentNotFoundException',
    'PaymentAmountMismatchException',
    'PaymentCurrencyMismatchException',
    'PaymentGatewayException',
    'InvalidPaymentMethodException',
    'MissingPayerEmailException',
    'InvalidWebhookSignatureException',

    # Shipping
    'ShippingException',
    'MissingShippingAddressException',
    'InvalidAddressException',

    # User
    'UserException',
    'AuthenticationRequiredException',
    'InvalidCredentialsException',
    'AdminRequiredException',
    'EmailAlreadyRegisteredException',
    'InvalidResetTokenException',
    'AccountDisabledException',
]
