from rest_framework import serializers

from apps.devis.models import Devis
from apps.devis.serializers import OwnedArticleIdField, OwnedChantierField
from .models import Facture, FactureItem


class FactureItemSerializer(serializers.ModelSerializer):
    total_ht = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = FactureItem
        fields = [
            'id', 'article', 'description', 'quantity', 'unit', 'unit_price',
            'tva', 'progress_percentage', 'position', 'total_ht'
        ]
        read_only_fields = fields


class FactureListSerializer(serializers.ModelSerializer):
    chantier_name = serializers.CharField(source='chantier.name', read_only=True, allow_null=True)
    client_name = serializers.CharField(source='chantier.client.name', read_only=True, allow_null=True)
    devis_reference = serializers.CharField(source='devis.reference', read_only=True, allow_null=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    is_deleted = serializers.BooleanField(read_only=True)

    class Meta:
        model = Facture
        fields = [
            'id', 'reference', 'type', 'type_display', 'situation_index',
            'chantier', 'chantier_name', 'client_name', 'devis', 'devis_reference',
            'status', 'status_display', 'date_emission', 'date_echeance',
            'total_ht', 'total_ttc', 'is_deleted', 'deleted_at', 'created_at'
        ]
        read_only_fields = fields


class FactureSerializer(FactureListSerializer):
    items = FactureItemSerializer(many=True, read_only=True)

    class Meta(FactureListSerializer.Meta):
        fields = FactureListSerializer.Meta.fields + ['items']
        read_only_fields = fields


class OwnedDevisField(serializers.PrimaryKeyRelatedField):

    def get_queryset(self):
        request = self.context.get('request')
        if request is None:
            return Devis.objects.none()
        return Devis.objects.filter(created_by=request.user).select_related('chantier')


class FactureCreateSerializer(serializers.Serializer):
    chantier_id = OwnedChantierField(source='chantier')


class FromDevisSerializer(serializers.Serializer):
    devis_id = OwnedDevisField(source='devis')


class AcompteSerializer(FromDevisSerializer):
    percentage = serializers.DecimalField(max_digits=5, decimal_places=2)

    def validate_percentage(self, value):
        if value <= 0 or value > 100:
            raise serializers.ValidationError("Pourcentage invalide", code="rejected")
        return value


class FactureLineInputSerializer(serializers.Serializer):
    """One line of the invoice editor, id is "new_..." for unsaved lines"""
    id = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4, default=0)
    unit = serializers.CharField(required=False, allow_blank=True, default='')
    unit_price = serializers.DecimalField(max_digits=16, decimal_places=4, default=0)
    tva = serializers.DecimalField(max_digits=6, decimal_places=2, default=20)
    progress_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    article_id = OwnedArticleIdField(required=False, allow_null=True)


class FactureMetaSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Facture.STATUS_CHOICES, required=False)
    date_echeance = serializers.DateField(required=False, allow_null=True)


class FactureSaveSerializer(serializers.Serializer):
    items = FactureLineInputSerializer(many=True)
    facture = FactureMetaSerializer(required=False)


class SendFactureEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()
    pdf_base64 = serializers.CharField(required=False, allow_blank=True)
