# apps/notifications/serializers.py
from rest_framework import serializers

from apps.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Serializer for Notification model"""
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_global = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id',
            'type',
            'type_display',
            'title',
            'message',
            'data',
            'status',
            'status_display',
            'is_global',
            'created_at',
        ]
        read_only_fields = fields


class ConfirmOrderSerializer(serializers.Serializer):
    article_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
