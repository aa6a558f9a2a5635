"""Routing for permission matrix endpoints."""

from django.urls import path

from .views import MyPermissionsView, PermissionCheckView, PermissionMatrixView, ResourceCatalogView

urlpatterns = [
    path("permissions/", PermissionMatrixView.as_view(), name="permissions"),
    path("permissions/mine/", MyPermissionsView.as_view(), name="permissions-mine"),
    path("permissions/check/", PermissionCheckView.as_view(), name="permissions-check"),
    path("permissions/catalog/", ResourceCatalogView.as_view(), name="permissions-catalog"),
]
