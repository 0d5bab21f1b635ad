from django.conf import settings
from django.db import models

from .types import (
    CURRENCY_CHOICES,
    QUANTITY_BASIS_CHOICES,
    SCOPE_CHOICES,
    SERVICE_KEY_CHOICES,
)


class QuantityRule(models.Model):
    service_key = models.CharField(max_length=32, unique=True, choices=SERVICE_KEY_CHOICES)
    quantity_basis = models.CharField(max_length=8, choices=QUANTITY_BASIS_CHOICES)
    default_unit = models.CharField(max_length=16, default='FLAT')
    # Quantity stays unresolved unless this fact exists on the case
    requires_fact_key = models.CharField(max_length=64, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'pricing_quantity_rules'

    def __str__(self):
        return f"{self.service_key} ({self.quantity_basis})"


class UnitConversion(models.Model):
    container_type = models.CharField(max_length=8, unique=True)
    evp_factor = models.DecimalField(max_digits=6, decimal_places=2)

    class Meta:
        db_table = 'pricing_unit_conversions'

    def __str__(self):
        return f"{self.container_type} = {self.evp_factor} EVP"


class PricingRateCard(models.Model):
    service_key = models.CharField(max_length=32, choices=SERVICE_KEY_CHOICES)
    scope = models.CharField(max_length=10, choices=SCOPE_CHOICES)
    unit = models.CharField(max_length=16)
    currency = models.CharField(max_length=8, default='XOF')
    value = models.DecimalField(max_digits=14, decimal_places=2)
    source = models.CharField(max_length=128)
    confidence = models.DecimalField(max_digits=3, decimal_places=2, default=1)
    container_type = models.CharField(max_length=8, blank=True, null=True)
    corridor = models.CharField(max_length=32, blank=True, null=True)
    origin_port = models.CharField(max_length=64, blank=True, null=True)
    destination_port = models.CharField(max_length=64, blank=True, null=True)
    origin_country = models.CharField(max_length=64, blank=True, null=True)
    destination_country = models.CharField(max_length=64, blank=True, null=True)
    effective_from = models.DateField(blank=True, null=True)
    effective_to = models.DateField(blank=True, null=True)
    min_charge = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pricing_rate_cards'
        indexes = [
            models.Index(fields=['service_key', 'scope'], name='pricing_rc_service_scope_idx'),
        ]

    def __str__(self):
        return f"{self.service_key}/{self.scope} {self.value} {self.currency}/{self.unit}"


class PortTariff(models.Model):
    OPERATION_CHOICES = [('IMPORT', 'Import'), ('EXPORT', 'Export')]

    provider = models.CharField(max_length=32)
    category = models.CharField(max_length=16)
    operation_type = models.CharField(max_length=8, choices=OPERATION_CHOICES)
    classification = models.CharField(max_length=128)
    cargo_type = models.CharField(max_length=32, blank=True, null=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=8, choices=CURRENCY_CHOICES, default='XOF')
    effective_date = models.DateField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    source_document = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'port_tariffs'
        indexes = [
            models.Index(fields=['provider', 'category', 'operation_type'], name='port_tariffs_lookup_idx'),
        ]

    def __str__(self):
        return f"{self.provider} {self.category} {self.operation_type} {self.classification}"


class LocalTransportRate(models.Model):
    origin = models.CharField(max_length=64, default='DAKAR')
    destination = models.CharField(max_length=128)
    container_type = models.CharField(max_length=32)
    rate_amount = models.DecimalField(max_digits=14, decimal_places=2)
    rate_currency = models.CharField(max_length=8, blank=True, null=True)
    provider = models.CharField(max_length=128, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    validity_start = models.DateField(blank=True, null=True)
    validity_end = models.DateField(blank=True, null=True)

    class Meta:
        db_table = 'local_transport_rates'

    def __str__(self):
        return f"{self.origin} -> {self.destination} {self.container_type}"


class ServicePricingAudit(models.Model):
    """Latest pricing decision for one service line of a case (upserted)."""
    case = models.ForeignKey('quotes.QuoteCase', on_delete=models.CASCADE, related_name='service_pricing')
    service_line_id = models.CharField(max_length=64)
    service_key = models.CharField(max_length=64)
    suggested_rate = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    currency = models.CharField(max_length=16)
    source = models.CharField(max_length=128)
    confidence = models.DecimalField(max_digits=4, decimal_places=3, default=0)
    explanation = models.TextField(blank=True, default='')
    quantity_used = models.DecimalField(max_digits=14, decimal_places=3, blank=True, null=True)
    unit_used = models.CharField(max_length=16, blank=True, null=True)
    rule_id = models.BigIntegerField(blank=True, null=True)
    conversion_used = models.TextField(blank=True, null=True)
    correlation_id = models.CharField(max_length=64, blank=True, default='')
    priced_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    priced_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'quote_service_pricing'
        constraints = [
            models.UniqueConstraint(fields=['case', 'service_line_id'], name='uniq_service_pricing_case_line'),
        ]

    def __str__(self):
        return f"{self.case_id}:{self.service_line_id} {self.source}"
