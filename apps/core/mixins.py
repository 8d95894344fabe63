# apps/core/mixins.py
"""
Reusable mixins for ViewSets.
Every business row belongs to the user who created it; the owner mixins
below make sure a user only ever reads or writes their own rows.
"""
from rest_framework import filters
from django_filters.rest_framework import DjangoFilterBackend

from apps.core.cache import revalidate_paths


class StandardFilterMixin:
    """
    Provides standard filtering, searching, and ordering configuration.
    """
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]



class OwnedQuerysetMixin:
    """
    Scopes get_queryset() to rows owned by the authenticated user.

    owner_field names the lookup leading to the owning user, e.g.
    'created_by' or 'devis__created_by'.
    """
    owner_field = 'created_by'

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self, 'swagger_fake_view', False):
            return queryset.none()
        return queryset.filter(**{self.owner_field: self.request.user})


class RevalidateMixin:
    """
    Revalidates cached page data after every successful write.

    stale_paths lists the dashboard paths a write on this resource
    makes stale; get_revalidate_paths() can add instance specific ones.
    """
    stale_paths = ()

    def get_revalidate_paths(self, instance=None):
        return list(self.stale_paths)

    def perform_create(self, serializer):
        super().perform_create(serializer)
        revalidate_paths(self.get_revalidate_paths(serializer.instance))

    def perform_update(self, serializer):
        super().perform_update(serializer)
        revalidate_paths(self.get_revalidate_paths(serializer.instance))

    def perform_destroy(self, instance):
        paths = self.get_revalidate_paths(instance)
        super().perform_destroy(instance)
        revalidate_paths(paths)
