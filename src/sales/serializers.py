"""Serializers for sales, their single-field edits, and bulk clean-up."""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from access_control.resource_keys import editable_sale_fields
from .models import Product, Sale, SaleStatus

User = get_user_model()


class SaleSerializer(serializers.ModelSerializer):
    """Sale payload keyed by column names (``product_id``, ``status_id``, ``assigned_to``)."""

    product_id = serializers.PrimaryKeyRelatedField(source="product", queryset=Product.objects.all())
    status_id = serializers.PrimaryKeyRelatedField(
        source="status", queryset=SaleStatus.objects.all(), required=False
    )
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )
    agent = serializers.PrimaryKeyRelatedField(read_only=True)
    status_updated_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        """Agent and status audit columns are server-managed."""

        model = Sale
        fields = [
            "id",
            "product_id",
            "status_id",
            "agent",
            "assigned_to",
            "sale_date",
            "contact_number",
            "os_madre",
            "os_hija",
            "installed_number",
            "comment_claro",
            "comment_orion",
            "comment_dofu",
            "status_updated_by",
            "status_updated_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "agent", "status_updated_by", "status_updated_at", "created_at", "updated_at"]
        extra_kwargs = {"sale_date": {"required": False}}


class SaleFieldUpdateSerializer(serializers.Serializer):
    """One column edit: ``{"field": "<column>", "value": ...}``."""

    field = serializers.ChoiceField(choices=editable_sale_fields())
    value = serializers.JSONField(allow_null=True)


class SaleFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the sales listing."""

    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    os_madre = serializers.CharField(required=False, allow_blank=True)
    os_hija = serializers.CharField(required=False, allow_blank=True)
    contact_number = serializers.CharField(required=False, allow_blank=True)
    status_id = serializers.IntegerField(required=False)


class SaleClearSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)


__all__ = ["SaleSerializer", "SaleFieldUpdateSerializer", "SaleFilterSerializer", "SaleClearSerializer"]
