from rest_framework import permissions


class CanPriceCase(permissions.BasePermission):
    """
    Object-level permission for pricing a quote case.

    The case owner may always price it; staff and managers may price any case.
    """
    message = "Case not found or access denied"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        user = request.user
        if getattr(user, "can_price_any_case", False):
            return True
        return obj.created_by_id is not None and obj.created_by_id == user.id
