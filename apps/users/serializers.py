from rest_framework import serializers
from .models import CustomUser


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'phone_number')
        read_only_fields = ('id', 'username')
        ref_name = 'CustomUserSerializer'


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        user = CustomUser.objects.filter(email__iexact=attrs['email'], is_active=True).first()
        if user is None or not user.check_password(attrs['password']):
            raise serializers.ValidationError({"error": "Identifiants invalides"})
        attrs['user'] = user
        return attrs


class MagicLinkRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
