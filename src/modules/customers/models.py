"""Customer model.

Orders only ever check that a customer exists; profile maintenance lives
with the CRM side of the system.  ``document`` and ``email`` are globally
unique regardless of soft-delete state.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import SoftDeleteModel


class Customer(SoftDeleteModel):
    """Customer referenced by orders."""

    name = models.CharField(max_length=255)
    document = models.CharField(max_length=32, unique=True)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.document:
            self.document = self.document.strip()
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.document[-4:] if self.document else "????"
        return f"{self.name} (***{suffix})"
