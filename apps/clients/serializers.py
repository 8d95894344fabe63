from rest_framework import serializers
from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    full_address = serializers.CharField(read_only=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'type', 'type_display', 'email', 'billing_email',
            'phone_mobile', 'phone_fixe', 'address_line1', 'address_line2',
            'city', 'zip_code', 'full_address', 'siret', 'iban',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_siret(self, value):
        digits = value.replace(' ', '')
        if digits and (not digits.isdigit() or len(digits) != 14):
            raise serializers.ValidationError("SIRET invalide", code="rejected")
        return digits

    def validate_iban(self, value):
        return value.replace(' ', '').upper()


class ClientImportSerializer(serializers.Serializer):
    clients = ClientSerializer(many=True, allow_empty=False)
