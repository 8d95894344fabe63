from rest_framework import serializers

from apps.clients.models import Client
from .models import Chantier


class ChantierSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Chantier
        fields = [
            'id', 'name', 'client', 'client_name', 'status', 'status_display',
            'address_line1', 'date_debut', 'email_contact', 'progress',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_progress(self, obj):
        done, total, percent = obj.workflow_progress()
        return {'done': done, 'total': total, 'percent': percent}

    def validate_client(self, client):
        request = self.context.get('request')
        if request is not None and client.created_by_id != request.user.pk:
            raise serializers.ValidationError("Client introuvable", code="rejected")
        return client


class ChantierCreateSerializer(serializers.Serializer):
    """Form fields of the new job site dialog"""
    name = serializers.CharField(max_length=255)
    client_id = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), source='client')
    status = serializers.ChoiceField(choices=Chantier.STATUS_CHOICES, default=Chantier.STATUS_ETUDE)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    date_debut = serializers.DateField(required=False, allow_null=True, default=None)
    email_contact = serializers.EmailField(required=False, allow_blank=True, default='')

    def validate_client_id(self, client):
        request = self.context.get('request')
        if request is not None and client.created_by_id != request.user.pk:
            raise serializers.ValidationError("Client introuvable", code="rejected")
        return client


class ChantierStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Chantier.STATUS_CHOICES)
