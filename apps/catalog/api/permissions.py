from rest_framework.permissions import BasePermission

from apps.catalog.capabilities import authorize
from apps.catalog.exceptions import Unauthorized


class IsCatalogAdmin(BasePermission):
    """
    Only active staff users reach the back-office API.
    """
    message = 'Unauthorized'

    def has_permission(self, request, view):
        try:
            authorize(request.user)
        except Unauthorized:
            return False
        return True
