# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ('sales', 'Sales'),
        ('operations', 'Operations'),
        ('manager', 'Manager'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='sales')

    @property
    def can_price_any_case(self) -> bool:
        return self.is_staff or self.role == 'manager'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
