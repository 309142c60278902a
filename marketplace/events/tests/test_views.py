from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from catalog.models import Item
from events.models import Interaction
from events.utils import record_click


class ClickItemTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='buyer', password='testpass')
        seller = User.objects.create_user(username='seller', password='testpass')
        self.item = Item.objects.create(seller=seller, code='CODE1', price=10)
        self.client.login(username='buyer', password='testpass')

    def test_click_is_recorded(self):
        response = self.client.post(reverse('click-item'), {'item_id': self.item.id})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['item_id'], self.item.id)
        click = Interaction.objects.get()
        self.assertEqual((click.user, click.item, click.kind), (self.user, self.item, Interaction.CLICK))
        self.assertEqual(click.weight, 1)

    def test_repeated_clicks_are_separate_events(self):
        for _ in range(3):
            self.client.post(reverse('click-item'), {'item_id': self.item.id})

        self.assertEqual(Interaction.objects.filter(kind=Interaction.CLICK).count(), 3)

    def test_missing_item_id(self):
        self.assertEqual(self.client.post(reverse('click-item')).status_code, 400)

    def test_unknown_or_deleted_item(self):
        gone = Item.objects.create(seller=self.user, code='GONE', is_deleted=True)
        for item_id in (999999, gone.id, 'abc'):
            response = self.client.post(reverse('click-item'), {'item_id': item_id})
            self.assertEqual(response.status_code, 404, item_id)
        self.assertFalse(Interaction.objects.exists())

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(reverse('click-item')).status_code, 405)

    def test_login_required(self):
        self.client.logout()
        response = self.client.post(reverse('click-item'), {'item_id': self.item.id})

        self.assertEqual(response.status_code, 302)


class RecordClickTests(TestCase):
    def test_unknown_item_raises(self):
        user = User.objects.create_user(username='buyer', password='testpass')
        with self.assertRaises(Item.DoesNotExist):
            record_click(user.id, 424242)
