from django.db import models


class User(models.Model):
    """
    Local mirror of a Clerk identity.
    Rows are created the first time a verified Clerk session is seen.
    """
    clerk_id = models.CharField(
        max_length=255,
        unique=True,
        verbose_name='Clerk ID'
    )
    email = models.EmailField(
        unique=True,
        verbose_name='Email'
    )
    name = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Name'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['email']
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.name or self.email

    # DRF and django-simple-history only look at these two flags
    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False
