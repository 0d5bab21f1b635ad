from django.contrib import admin

from pricing.models import (
    LocalTransportRate,
    PortTariff,
    PricingRateCard,
    QuantityRule,
    ServicePricingAudit,
    UnitConversion,
)


@admin.register(QuantityRule)
class QuantityRuleAdmin(admin.ModelAdmin):
    list_display = ("id", "service_key", "quantity_basis", "default_unit", "requires_fact_key")
    list_filter = ("quantity_basis",)
    search_fields = ("service_key",)


@admin.register(UnitConversion)
class UnitConversionAdmin(admin.ModelAdmin):
    list_display = ("id", "container_type", "evp_factor")


@admin.register(PricingRateCard)
class PricingRateCardAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "service_key",
        "scope",
        "unit",
        "currency",
        "value",
        "container_type",
        "corridor",
        "confidence",
        "effective_from",
        "effective_to",
    )
    list_filter = ("service_key", "scope", "currency", "container_type", "corridor")
    search_fields = ("service_key", "source", "notes")


@admin.register(PortTariff)
class PortTariffAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "provider",
        "category",
        "operation_type",
        "classification",
        "amount",
        "currency",
        "effective_date",
        "is_active",
    )
    list_filter = ("provider", "category", "operation_type", "is_active")


@admin.register(LocalTransportRate)
class LocalTransportRateAdmin(admin.ModelAdmin):
    list_display = ("id", "origin", "destination", "container_type", "rate_amount", "rate_currency", "is_active")
    list_filter = ("is_active", "origin")
    search_fields = ("destination", "provider")


@admin.register(ServicePricingAudit)
class ServicePricingAuditAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "case",
        "service_line_id",
        "service_key",
        "suggested_rate",
        "currency",
        "source",
        "confidence",
        "priced_at",
    )
    list_filter = ("source", "currency")
    search_fields = ("case__reference", "service_line_id", "correlation_id")
    readonly_fields = ("priced_at",)
