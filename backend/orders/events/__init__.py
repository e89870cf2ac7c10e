from .publishers import OrderEventPublisher

__all__ = ["OrderEventPublisher"]
