"""
Orders views package - viewset plus status action mixin.
"""

from .order_viewset import OrderViewSet

__all__ = [
    'OrderViewSet',
]
