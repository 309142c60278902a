# recommendation/serializers.py
from rest_framework import serializers


class CandidateItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    code = serializers.CharField()
    description = serializers.CharField()
    price = serializers.FloatField(allow_null=True)
    discount = serializers.FloatField()
    is_discount_percentage = serializers.BooleanField()
    categories = serializers.ListField(source="category_names", child=serializers.CharField())
    works_online = serializers.BooleanField()
    works_in_store = serializers.BooleanField()
    expiry_date = serializers.DateField(allow_null=True)
    listing_date = serializers.DateTimeField(source="created_at")
    shop_id = serializers.IntegerField(allow_null=True)
    shop_name = serializers.CharField(allow_null=True)
    seller_id = serializers.IntegerField()
    seller_username = serializers.CharField()
    seller_reputation = serializers.FloatField(allow_null=True)


class ScoresSerializer(serializers.Serializer):
    contentBased = serializers.SerializerMethodField()
    collaborative = serializers.SerializerMethodField()
    sellerReputation = serializers.SerializerMethodField()
    popularity = serializers.SerializerMethodField()
    final = serializers.SerializerMethodField()

    def get_contentBased(self, obj):
        return round(obj.content_score, 3)

    def get_collaborative(self, obj):
        return round(obj.collaborative_score, 3)

    def get_sellerReputation(self, obj):
        return round(obj.seller_rep_score, 3)

    def get_popularity(self, obj):
        return round(obj.popularity_score, 3)

    def get_final(self, obj):
        return round(obj.final_score, 3)


class ScoredCandidateSerializer(CandidateItemSerializer):
    is_saved = serializers.BooleanField()
    scores = ScoresSerializer(source="*")


class QuickRecommendationSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    code = serializers.CharField()
    finalScore = serializers.FloatField(source="final_score")
    discount = serializers.FloatField()
    price = serializers.FloatField(allow_null=True)


class FeedItemSerializer(CandidateItemSerializer):
    score = serializers.FloatField()
    was_clicked = serializers.BooleanField()
