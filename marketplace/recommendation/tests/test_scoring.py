from django.test import SimpleTestCase

from recommendation.exceptions import ComputationError
from recommendation.profile import ChannelPreference, UserPreferenceProfile
from recommendation.scoring import (
    channel_score,
    compute_content_score,
    jaccard_similarity,
    price_similarity,
    seller_reputation_score,
)

from .helpers import make_candidate, make_profile


class JaccardSimilarityTests(SimpleTestCase):
    def test_identical_sets(self):
        self.assertEqual(jaccard_similarity(['Food', 'Drinks'], ['Drinks', 'Food']), 1.0)

    def test_disjoint_sets(self):
        self.assertEqual(jaccard_similarity(['Food'], ['Books']), 0.0)

    def test_partial_overlap_is_symmetric(self):
        a, b = ['Food', 'Drinks', 'Snacks'], ['Food', 'Books']
        self.assertAlmostEqual(jaccard_similarity(a, b), 0.25)
        self.assertEqual(jaccard_similarity(a, b), jaccard_similarity(b, a))

    def test_empty_sets_score_zero(self):
        self.assertEqual(jaccard_similarity([], []), 0.0)
        self.assertEqual(jaccard_similarity(None, ['Food']), 0.0)


class ComponentTests(SimpleTestCase):
    def test_price_similarity(self):
        self.assertAlmostEqual(price_similarity(22.0, 20.0), 1 - 2 / 22)
        self.assertEqual(price_similarity(20.0, 20.0), 1.0)

    def test_missing_price_counts_as_zero(self):
        self.assertEqual(price_similarity(None, 20.0), 0.0)

    def test_price_similarity_never_negative(self):
        self.assertEqual(price_similarity(1000.0, 1.0), max(0.0, 1 - 999 / 1000))
        self.assertGreaterEqual(price_similarity(0.5, 0.0), 0.0)

    def test_channel_score(self):
        pref = ChannelPreference(online=0.7, in_store=0.4, preferred='online')
        self.assertEqual(channel_score(pref, True, True), 1.0)
        self.assertEqual(channel_score(pref, True, False), 0.7)
        self.assertEqual(channel_score(pref, False, True), 0.4)
        self.assertEqual(channel_score(pref, False, False), 0.0)

    def test_seller_reputation_is_clamped(self):
        self.assertEqual(seller_reputation_score(80), 0.8)
        self.assertEqual(seller_reputation_score(None), 0.0)
        self.assertEqual(seller_reputation_score(150), 1.0)
        self.assertEqual(seller_reputation_score(-5), 0.0)


class ContentScoreTests(SimpleTestCase):
    def test_all_components_present(self):
        score = compute_content_score(make_profile(), make_candidate())

        expected = ((1 - 2 / 22) * 0.35 + 1.0 * 0.35 + 1.0 * 0.15 + 0.8 * 0.15) / 1.0
        self.assertAlmostEqual(score, expected, places=6)
        self.assertAlmostEqual(score, 0.938182, places=6)

    def test_missing_components_leave_the_denominator(self):
        profile = make_profile(channel_preference=None)
        candidate = make_candidate(seller_reputation=None, category_names=())

        # only the price component remains
        self.assertAlmostEqual(compute_content_score(profile, candidate), 1 - 2 / 22)

    def test_no_components_scores_zero(self):
        profile = UserPreferenceProfile(user_id=1)
        candidate = make_candidate(seller_reputation=None)

        self.assertEqual(compute_content_score(profile, candidate), 0.0)

    def test_score_stays_in_unit_interval(self):
        for price in (0.0, 1.0, 20.0, 5000.0):
            for rep in (0.0, 55.0, 100.0):
                score = compute_content_score(make_profile(), make_candidate(price=price, seller_reputation=rep))
                self.assertGreaterEqual(score, 0.0)
                self.assertLessEqual(score, 1.0)

    def test_malformed_candidate_raises_computation_error(self):
        candidate = make_candidate(price='twenty')

        with self.assertRaises(ComputationError):
            compute_content_score(make_profile(), candidate)
