from rest_framework import serializers
from apps.articles.models import Article, ArticleComposant


class ArticleComposantSerializer(serializers.ModelSerializer):
    child_name = serializers.CharField(source='child.name', read_only=True)
    child_unit = serializers.CharField(source='child.unit', read_only=True)

    class Meta:
        model = ArticleComposant
        fields = ['id', 'child', 'child_name', 'child_unit', 'quantity']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantité invalide", code="rejected")
        return value


class ArticleSerializer(serializers.ModelSerializer):
    composants = ArticleComposantSerializer(many=True, read_only=True)
    margin_ht = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Article
        fields = [
            'id', 'name', 'category', 'unit', 'price_ht', 'cost_ht', 'tva',
            'stock', 'margin_ht', 'composants', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_price_ht(self, value):
        if value < 0:
            raise serializers.ValidationError("Prix de vente ne peut pas être négatif", code="rejected")
        return value

    def validate_cost_ht(self, value):
        if value < 0:
            raise serializers.ValidationError("Prix d'achat ne peut pas être négatif", code="rejected")
        return value


class ArticleImportSerializer(serializers.Serializer):
    articles = ArticleSerializer(many=True, allow_empty=False)


class StockAdjustSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    operation = serializers.ChoiceField(choices=['add', 'subtract'], default='add')
