from django.conf import settings
from django.db import models


class QuoteCase(models.Model):
    STATUS_CHOICES = [
        ('NEW', 'New'),
        ('FACTS_PARTIAL', 'Facts partial'),
        ('READY_TO_PRICE', 'Ready to price'),
        ('PRICED', 'Priced'),
        ('QUOTED', 'Quoted'),
    ]

    reference = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='NEW')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name='quote_cases')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'quote_cases'
        indexes = [
            models.Index(fields=['created_by', '-created_at'], name='quote_cases_created_4c1e2a_idx'),
        ]

    def current_facts(self):
        return self.facts.filter(is_current=True)

    def __str__(self):
        return self.reference


class QuoteFact(models.Model):
    """
    One extracted shipment fact (e.g. ``cargo.containers``) attached to a case.

    Superseded values are kept with ``is_current=False``; pricing only ever
    reads the current ones.
    """
    case = models.ForeignKey(QuoteCase, on_delete=models.CASCADE, related_name='facts')
    fact_key = models.CharField(max_length=64)
    value_text = models.TextField(blank=True, null=True)
    value_number = models.DecimalField(max_digits=18, decimal_places=3, blank=True, null=True)
    value_json = models.JSONField(blank=True, null=True)
    source_type = models.CharField(max_length=32, blank=True, null=True)
    is_current = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'quote_facts'
        indexes = [
            models.Index(fields=['case', 'fact_key', 'is_current'], name='quote_facts_case_id_8d2f71_idx'),
        ]

    def __str__(self):
        return f"{self.case_id}:{self.fact_key}"
