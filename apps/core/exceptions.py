# apps/core/exceptions.py
from django.db.models import ProtectedError
from django.db.utils import IntegrityError
from rest_framework.views import exception_handler
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError


class ActionError(APIException):
    """
    Base error for a failed action.
    Rendered as {"error": "<message>"} by custom_exception_handler.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = {'error': 'Erreur lors de la sauvegarde'}
    default_code = 'action_error'

    def __init__(self, message=None, code=None):
        detail = {'error': message} if message else None
        super().__init__(detail=detail, code=code)


class InsufficientStockError(ActionError):
    """Raised when there's not enough stock for an operation"""
    default_detail = {'error': 'Stock insuffisant'}
    default_code = 'insufficient_stock'


class RelatedDataError(ActionError):
    """Raised when a row cannot be deleted because other rows still point to it"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = {'error': 'Impossible de supprimer : des données y sont encore liées.'}
    default_code = 'related_data'


class ResourceNotFoundError(ActionError):
    """Raised when an action targets a row that does not exist for the user"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = {'error': 'Non trouvé'}
    default_code = 'not_found'


# Built-in validation codes rendered as a generic French message.
# Messages raised with any other code (e.g. "rejected") are shown as is.
CODE_MESSAGES = {
    'required': "Champ obligatoire manquant",
    'null': "Champ obligatoire manquant",
    'blank': "Champ ne peut pas être vide",
    'unique': "Doublon non autorisé",
    'invalid': "Données invalides",
    'max_string_length': "Données invalides",
    'max_digits': "Données invalides",
    'max_decimal_places': "Données invalides",
    'max_whole_digits': "Données invalides",
    'min_value': "Données invalides",
    'max_value': "Données invalides",
    'max_length': "Données invalides",
    'invalid_choice': "Valeur non autorisée",
    'does_not_exist': "Élément introuvable",
    'incorrect_type': "Données invalides",
    'not_a_list': "Données invalides",
    'empty': "Liste vide",
}


def _first_error(data, codes):
    """Walk the error detail and its codes down to the first leaf"""
    if isinstance(data, dict):
        if not data:
            return "Données invalides", None
        key = next(iter(data))
        sub_codes = codes.get(key) if isinstance(codes, dict) else None
        return _first_error(data[key], sub_codes)
    if isinstance(data, list):
        for index, item in enumerate(data):
            if item in ({}, [], None):
                continue
            sub_codes = codes[index] if isinstance(codes, list) and index < len(codes) else None
            return _first_error(item, sub_codes)
        return "Données invalides", None
    return str(data), codes if isinstance(codes, str) else None


def _first_validation_message(data, codes=None):
    message, code = _first_error(data, codes)
    return CODE_MESSAGES.get(code, message)


def custom_exception_handler(exc, context):
    """Custom exception handler to return all errors in {error: ""} format"""
    if isinstance(exc, ProtectedError):
        exc = RelatedDataError()
    elif isinstance(exc, IntegrityError):
        exc = ActionError("Contrainte d'intégrité violée")

    response = exception_handler(exc, context)

    if response is None:
        return response

    detail = getattr(exc, 'detail', None)
    if isinstance(exc, ActionError) and isinstance(detail, dict) and 'error' in detail:
        response.data = {'error': str(detail['error'])}
    elif response.status_code == status.HTTP_400_BAD_REQUEST:
        message = "Données invalides"
        if isinstance(response.data, dict):
            if 'error' in response.data:
                error = response.data['error']
                message = str(error[0] if isinstance(error, list) and error else error)
            else:
                codes = exc.get_codes() if isinstance(exc, ValidationError) else None
                message = _first_validation_message(response.data, codes)
        elif isinstance(response.data, list) and response.data:
            message = str(response.data[0])
        response.data = {"error": message}
    elif response.status_code == status.HTTP_401_UNAUTHORIZED:
        response.data = {"error": "Non connecté"}
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        response.data = {"error": "Accès refusé"}
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        response.data = {"error": "Non trouvé"}
    elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        response.data = {"error": "Méthode non autorisée"}
    elif response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        response.data = {"error": "Erreur serveur"}

    return response
