"""
permissions.py

Role-based access control for the admin site and the REST API.
"""

from django.contrib import admin
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import CustomUser

EDITOR_ROLES = [CustomUser.Roles.ADMIN, CustomUser.Roles.MANAGER]
FLOOR_ROLES = EDITOR_ROLES + [CustomUser.Roles.HOST]


class RoleRestrictedAdmin(admin.ModelAdmin):
    """
    A base admin class that enforces role-based view, add, change, and delete permissions.
    Hosts may look; only managers and administrators may change anything.
    """

    def has_module_permission(self, request):
        user = request.user
        if not user.is_authenticated:
            return False
        return user.is_superuser or user.role in EDITOR_ROLES

    def has_view_permission(self, request, obj=None):
        user = request.user
        return user.is_authenticated and (user.is_superuser or user.role in FLOOR_ROLES)

    def has_add_permission(self, request):
        user = request.user
        return user.is_superuser or user.role in EDITOR_ROLES

    def has_change_permission(self, request, obj=None):
        user = request.user
        return user.is_superuser or user.role in EDITOR_ROLES

    def has_delete_permission(self, request, obj=None):
        user = request.user
        return user.is_superuser or user.role in EDITOR_ROLES


class CanEditFloorPlan(BasePermission):
    """Any signed-in user may read the floor plan; writes need a manager or admin."""

    message = "You are not allowed to edit the floor plan."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return user.can_edit_floor_plan
