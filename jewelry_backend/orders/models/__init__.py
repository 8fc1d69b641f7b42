from .order import Order, OrderNumberSequence
from .order_item import OrderItem, OrderItemCustomization

__all__ = ["Order", "OrderItem", "OrderItemCustomization", "OrderNumberSequence"]
