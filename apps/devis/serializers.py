from rest_framework import serializers

from apps.articles.models import Article
from apps.chantiers.models import Chantier
from .models import Devis, DevisItem


class DevisItemSerializer(serializers.ModelSerializer):
    total_ht = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = DevisItem
        fields = [
            'id', 'article', 'item_type', 'description', 'quantity', 'unit',
            'unit_price', 'cost_price', 'tva', 'details', 'position', 'total_ht'
        ]
        read_only_fields = fields


class DevisSerializer(serializers.ModelSerializer):
    items = DevisItemSerializer(many=True, read_only=True)
    chantier_name = serializers.CharField(source='chantier.name', read_only=True)
    client_name = serializers.CharField(source='chantier.client.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Devis
        fields = [
            'id', 'reference', 'name', 'chantier', 'chantier_name', 'client_name',
            'status', 'status_display', 'notes', 'total_ht', 'total_ttc', 'items',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class DevisListSerializer(serializers.ModelSerializer):
    chantier_name = serializers.CharField(source='chantier.name', read_only=True)
    client_name = serializers.CharField(source='chantier.client.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Devis
        fields = [
            'id', 'reference', 'name', 'chantier', 'chantier_name', 'client_name',
            'status', 'status_display', 'total_ht', 'total_ttc', 'created_at'
        ]
        read_only_fields = fields


class OwnedChantierField(serializers.PrimaryKeyRelatedField):
    """Job site of the requesting user"""

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return Chantier.objects.none()
        return Chantier.objects.filter(created_by=request.user)


class OwnedArticleField(serializers.PrimaryKeyRelatedField):

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return Article.objects.none()
        return Article.objects.filter(created_by=request.user)


class OwnedArticleIdField(serializers.IntegerField):
    """Raw article id of an editor line, restricted to the requesting user's catalogue"""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        request = self.context.get('request')
        if request is None or not Article.objects.filter(pk=value, created_by=request.user).exists():
            raise serializers.ValidationError("Article introuvable", code="rejected")
        return value


class DevisCreateSerializer(serializers.Serializer):
    chantier_id = OwnedChantierField(source='chantier')


class AddArticleLineSerializer(serializers.Serializer):
    article_id = OwnedArticleField(source='article')


class DevisLineInputSerializer(serializers.Serializer):
    """One line of the quote editor, id is "new_..." for unsaved lines"""
    id = serializers.CharField(required=False, allow_blank=True)
    item_type = serializers.ChoiceField(choices=DevisItem.TYPE_CHOICES, default=DevisItem.TYPE_ITEM)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4, default=0)
    unit = serializers.CharField(required=False, allow_blank=True, default='')
    unit_price = serializers.DecimalField(max_digits=16, decimal_places=4, default=0)
    cost_price = serializers.DecimalField(max_digits=16, decimal_places=4, required=False)
    tva = serializers.DecimalField(max_digits=6, decimal_places=2, default=20)
    article_id = OwnedArticleIdField(required=False, allow_null=True)
    details = serializers.ListField(child=serializers.DictField(), required=False, default=list)


class DevisMetaSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Devis.STATUS_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class DevisSaveSerializer(serializers.Serializer):
    items = DevisLineInputSerializer(many=True)
    devis = DevisMetaSerializer(required=False)
