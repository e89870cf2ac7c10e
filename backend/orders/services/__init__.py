"""
Orders services package.

- OrderService: order lifecycle (create, confirm, advance, cancel) and the
  status state machine
"""

from .order_service import OrderService

__all__ = [
    'OrderService',
]
