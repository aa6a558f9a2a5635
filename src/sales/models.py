"""Sale work items and their lookup tables."""

from django.conf import settings
from django.db import models


class Product(models.Model):
    """Sellable product; user skills reference product ids."""

    name = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class SaleStatus(models.Model):
    """Workflow status of a sale; ``settings.SALES_PENDING_STATUS_ID`` marks pending."""

    name = models.CharField(max_length=100, unique=True)
    color = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = "statuses"
        ordering = ["id"]
        verbose_name_plural = "sale statuses"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Sale(models.Model):
    """A sale captured by an agent and processed by an assigned back-office worker."""

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="sales")
    status = models.ForeignKey(SaleStatus, on_delete=models.PROTECT, related_name="sales")
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_sales",
    )
    sale_date = models.DateTimeField()
    contact_number = models.CharField(max_length=50, blank=True)
    os_madre = models.CharField(max_length=100, blank=True)
    os_hija = models.CharField(max_length=100, blank=True)
    installed_number = models.CharField(max_length=50, blank=True)
    comment_claro = models.TextField(blank=True)
    comment_orion = models.TextField(blank=True)
    comment_dofu = models.TextField(blank=True)
    status_updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_updates",
    )
    status_updated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-sale_date", "-id"]
        indexes = [
            models.Index(fields=["assigned_to", "status"], name="idx_sale_assignee_status"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Sale #{self.pk} ({self.product_id})"


__all__ = ["Product", "SaleStatus", "Sale"]
