"""Common base models shared across apps.

`TimeStampedModel` gives every concrete model `created_at`/`updated_at`.
"""

from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base adding `created_at` and `updated_at` timestamps."""

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
