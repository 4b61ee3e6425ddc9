from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        SUSPENDED = "suspended", _("Suspended")
        DISABLED = "disabled", _("Disabled")

    class Roles(models.TextChoices):
        SUPER_ADMIN = "super_admin", _("Super Admin")
        ADMIN = "admin", _("Admin")
        SUB_ADMIN = "sub_admin", _("Sub Admin")
        USER = "user", _("User")

    # Written only through apps.users.ledger
    balance = models.DecimalField(max_digits=18, decimal_places=6, default=0)
    balance_updated_at = models.DateTimeField(null=True, blank=True)
    currency = models.CharField(max_length=10, default="INR")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    role = models.CharField(max_length=32, choices=Roles.choices, default=Roles.USER)
    full_name = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = 'shop_users'
        verbose_name = 'user'
        verbose_name_plural = 'users'
        constraints = [
            models.CheckConstraint(condition=models.Q(balance__gte=0), name='shop_users_balance_non_negative'),
        ]

    def __str__(self):
        return self.username
