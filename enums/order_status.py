from enum import Enum


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"     # Created at checkout, stock reserved
    PROCESSING = "PROCESSING"               # Paid (or COD confirmed), stock committed
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"                 # Cancelled by customer, admin or expiry job
