import logging

from catalog.models import Item
from .models import Interaction

logger = logging.getLogger(__name__)


def record_click(user_id, item_id):
    """Append a click event; raises Item.DoesNotExist for unknown or deleted items."""
    item = Item.objects.get(pk=item_id, is_deleted=False)
    click = Interaction.objects.create(user_id=user_id, item=item, kind=Interaction.CLICK)
    logger.debug("recorded click user=%s item=%s", user_id, item.pk)
    return click
