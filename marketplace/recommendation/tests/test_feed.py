import base64

from django.test import SimpleTestCase, TestCase

from events.models import Interaction
from recommendation.feed import decode_cursor, encode_cursor, get_feed
from recommendation.models import UserRecommendation

from .helpers import interact, make_item, make_user


class CursorTests(SimpleTestCase):
    def test_cursor_carries_the_offset(self):
        for offset in (0, 1, 20, 12345):
            self.assertEqual(decode_cursor(encode_cursor(offset)), offset)

    def test_cursor_is_url_safe(self):
        cursor = encode_cursor(40)
        self.assertRegex(cursor, r'^[A-Za-z0-9_\-=]+$')

    def test_garbage_means_start_from_the_top(self):
        bad = [
            None,
            '',
            'not-a-cursor',
            '%%%',
            base64.urlsafe_b64encode(b'[1, 2]').decode(),
            base64.urlsafe_b64encode(b'{"offset": -5}').decode(),
            base64.urlsafe_b64encode(b'{"offset": "7"}').decode(),
            base64.urlsafe_b64encode(b'{"offset": true}').decode(),
            base64.urlsafe_b64encode(b'\xff\xfe').decode(),
            base64.urlsafe_b64encode(b'{"offset": 1000000000000000000000000000000}').decode(),
        ]
        for cursor in bad:
            self.assertEqual(decode_cursor(cursor), 0, cursor)


class FeedTests(TestCase):
    def setUp(self):
        self.user = make_user('buyer')
        self.seller = make_user('seller', reputation=70)

    def snapshot(self, *pairs):
        UserRecommendation.objects.bulk_create([
            UserRecommendation(user=self.user, item=item, score=score) for item, score in pairs
        ])

    def test_snapshot_order_with_unscored_items_last(self):
        a, b, c = make_item(self.seller), make_item(self.seller), make_item(self.seller)
        unscored = make_item(self.seller)
        self.snapshot((a, 0.4), (b, 0.9), (c, 0.6))

        page = get_feed(self.user.id, limit=10)

        self.assertEqual([i.id for i in page.items], [b.id, c.id, a.id, unscored.id])
        self.assertEqual(page.items[-1].score, 0.0)
        self.assertFalse(page.has_more)

    def test_another_users_snapshot_is_ignored(self):
        a, b = make_item(self.seller), make_item(self.seller)
        other = make_user('other')
        UserRecommendation.objects.create(user=other, item=b, score=0.99)
        self.snapshot((a, 0.1))

        page = get_feed(self.user.id, limit=10)

        self.assertEqual([i.id for i in page.items], [a.id, b.id])

    def test_pagination(self):
        items = [make_item(self.seller) for _ in range(5)]
        self.snapshot(*[(item, 0.9 - i / 10) for i, item in enumerate(items)])

        first = get_feed(self.user.id, limit=2)
        second = get_feed(self.user.id, limit=2, cursor=first.next_cursor)
        third = get_feed(self.user.id, limit=2, cursor=second.next_cursor)

        self.assertEqual([i.id for i in first.items], [items[0].id, items[1].id])
        self.assertEqual([i.id for i in second.items], [items[2].id, items[3].id])
        self.assertEqual([i.id for i in third.items], [items[4].id])
        self.assertTrue(first.has_more)
        self.assertTrue(second.has_more)
        self.assertFalse(third.has_more)
        self.assertEqual(decode_cursor(third.next_cursor), 5)

    def test_purchased_items_are_dropped_but_still_advance_the_cursor(self):
        items = [make_item(self.seller, is_multiple_use=True) for _ in range(3)]
        self.snapshot(*[(item, 0.9 - i / 10) for i, item in enumerate(items)])
        interact(self.user, items[0], Interaction.PURCHASE)

        page = get_feed(self.user.id, limit=2)

        self.assertEqual([i.id for i in page.items], [items[1].id])
        self.assertEqual(decode_cursor(page.next_cursor), 2)
        self.assertTrue(page.has_more)

    def test_sold_single_use_items_leave_the_feed(self):
        sold = make_item(self.seller)
        kept = make_item(self.seller)
        self.snapshot((sold, 0.9), (kept, 0.5))
        interact(make_user('someone'), sold, Interaction.PURCHASE)

        page = get_feed(self.user.id, limit=10)

        self.assertEqual([i.id for i in page.items], [kept.id])

    def test_clicks_boost_and_reorder(self):
        top, clicked = make_item(self.seller), make_item(self.seller)
        self.snapshot((top, 0.5), (clicked, 0.45))
        interact(self.user, clicked, Interaction.CLICK)

        page = get_feed(self.user.id, limit=10)

        self.assertEqual([i.id for i in page.items], [clicked.id, top.id])
        self.assertEqual(page.items[0].score, 0.55)
        self.assertTrue(page.items[0].was_clicked)
        self.assertFalse(page.items[1].was_clicked)

    def test_click_boost_is_capped(self):
        item = make_item(self.seller)
        self.snapshot((item, 0.2))
        interact(self.user, item, Interaction.CLICK, times=7)

        page = get_feed(self.user.id, limit=10)

        self.assertEqual(page.items[0].score, 0.5)

    def test_invalid_limit_falls_back_to_the_default(self):
        for _ in range(25):
            make_item(self.seller)

        for limit in ('abc', 0, -3, None):
            self.assertEqual(len(get_feed(self.user.id, limit=limit).items), 20)

    def test_malformed_cursor_restarts(self):
        item = make_item(self.seller)

        page = get_feed(self.user.id, limit=5, cursor='garbage')

        self.assertEqual([i.id for i in page.items], [item.id])

    def test_feed_item_carries_listing_data(self):
        item = make_item(self.seller, price=9.99)
        self.snapshot((item, 0.3))

        entry = get_feed(self.user.id).items[0]

        self.assertEqual(entry.code, item.code)
        self.assertEqual(entry.price, 9.99)
        self.assertEqual(entry.seller_reputation, 70)
        self.assertEqual(entry.score, 0.3)

    def test_oversized_cursor_restarts_instead_of_failing(self):
        item = make_item(self.seller)
        cursor = encode_cursor(10 ** 30)

        page = get_feed(self.user.id, limit=5, cursor=cursor)

        self.assertEqual([i.id for i in page.items], [item.id])
        self.assertEqual(decode_cursor(page.next_cursor), 1)
