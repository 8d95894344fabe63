from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import CompanySettingsSerializer
from .services import CompanyService


class CompanySettingsView(APIView):
    """
    GET /api/company/settings/ - Settings of the current user, or null
    PUT /api/company/settings/ - Save settings (multipart for the logo)
    """
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request):
        company = CompanyService.get_company_settings(request.user)
        data = CompanySettingsSerializer(company, context={'request': request}).data if company else None
        return Response({'settings': data})

    def put(self, request):
        serializer = CompanySettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        company = CompanyService.save_company_settings(
            request.user,
            serializer.validated_data,
            logo=request.FILES.get('logo')
        )
        return Response({
            'success': True,
            'settings': CompanySettingsSerializer(company, context={'request': request}).data
        })

    post = put
