import logging
from typing import Dict, Iterable, Optional

from django.core.exceptions import ValidationError

from .models import MenuItem

logger = logging.getLogger(__name__)


class MenuCatalogService:
    """Read-only catalog lookups used when an order snapshot is taken."""

    @staticmethod
    def normalize_id(menu_item_id) -> Optional[str]:
        """Canonical string form of a menu item id, or None if malformed."""
        if menu_item_id in (None, ""):
            return None
        try:
            return str(MenuItem._meta.pk.to_python(menu_item_id))
        except ValidationError:
            logger.debug(f"Ignoring malformed menu item id {menu_item_id!r}")
            return None

    @classmethod
    def get_items(cls, menu_item_ids: Iterable) -> Dict[str, MenuItem]:
        """
        Returns the requested menu items keyed by normalize_id().
        Missing ids are simply absent from the result.
        """
        ids = {cls.normalize_id(item_id) for item_id in menu_item_ids}
        ids.discard(None)

        items = MenuItem.objects.filter(id__in=ids)
        return {str(item.id): item for item in items}
