import os

from django.db import models


class Asset(models.Model):
    """A media file referenced by path; the bytes live outside the database."""
    file_path = models.CharField(
        max_length=1024,
        verbose_name='File path'
    )
    mime_type = models.CharField(
        max_length=100,
        verbose_name='MIME type'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'id']
        verbose_name = 'Asset'
        verbose_name_plural = 'Assets'

    def __str__(self):
        return self.file_name

    @property
    def file_name(self):
        return os.path.basename(self.file_path)
