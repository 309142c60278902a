from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from catalog.models import Item
from .utils import record_click


@login_required
@require_POST
def click_item(request):
    item_id = request.POST.get('item_id')
    if not item_id:
        return JsonResponse({'message': 'item_id is required'}, status=400)
    try:
        click = record_click(request.user.id, int(item_id))
    except (ValueError, Item.DoesNotExist):
        return JsonResponse({'message': 'item not found'}, status=404)
    return JsonResponse({
        'message': 'Click recorded successfully',
        'data': {
            'id': click.id,
            'item_id': click.item_id,
            'clicked_at': click.created_at.isoformat(),
        },
    }, status=201)
