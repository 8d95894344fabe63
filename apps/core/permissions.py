# apps/core/permissions.py
"""
Permission classes shared by the apps.
"""
from rest_framework import permissions


class IsOwner(permissions.BasePermission):
    """
    Object-level permission for row owners.
    owner_field on the view points to the owning user, as for OwnedQuerysetMixin.
    """
    message = "Accès refusé"

    def has_object_permission(self, request, view, obj):
        if not request.user.is_authenticated:
            return False

        owner = obj
        for part in getattr(view, 'owner_field', 'created_by').split('__'):
            owner = getattr(owner, part, None)
            if owner is None:
                return False
        return owner == request.user


class IsOwnerOrShared(IsOwner):
    """
    Like IsOwner, but rows flagged as public (workflow templates) are
    readable by every authenticated user.
    """
    def has_object_permission(self, request, view, obj):
        if super().has_object_permission(request, view, obj):
            return True
        if request.method not in permissions.SAFE_METHODS:
            return False
        return bool(getattr(obj, 'is_public', False))
