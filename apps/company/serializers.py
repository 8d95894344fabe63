from rest_framework import serializers

from .models import CompanySettings


class CompanySettingsSerializer(serializers.ModelSerializer):
    logo_url = serializers.SerializerMethodField()

    class Meta:
        model = CompanySettings
        fields = ['id', 'name', 'address', 'siret', 'email', 'phone', 'footer_text', 'logo_url', 'updated_at']
        read_only_fields = ['id', 'logo_url', 'updated_at']

    def get_logo_url(self, obj):
        if not obj.logo:
            return None
        request = self.context.get('request')
        url = obj.logo.url
        return request.build_absolute_uri(url) if request else url
