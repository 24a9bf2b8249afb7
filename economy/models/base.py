from django.db import models

from economy.exceptions import InvalidStateError


class BaseModel(models.Model):
    """
    Abstract base model providing common timestamp fields.

    Mutable rows (wallets, NFTs, bids) inherit from this so that
    created_at / updated_at are tracked consistently.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class AppendOnlyModel(models.Model):
    """
    Abstract base for audit rows that are written once and never changed.

    Saving an already-persisted row or deleting one raises InvalidStateError.
    Bulk queryset operations bypass these guards and are not used on these tables.
    """

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvalidStateError(
                f"{self.__class__.__name__} rows are append-only."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidStateError(f"{self.__class__.__name__} rows are append-only.")
