from django.contrib import admin

from .models import QuoteCase, QuoteFact


class QuoteFactInline(admin.TabularInline):
    model = QuoteFact
    extra = 0
    fields = ("fact_key", "value_text", "value_number", "value_json", "is_current")


@admin.register(QuoteCase)
class QuoteCaseAdmin(admin.ModelAdmin):
    list_display = ("reference", "status", "created_by", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("reference", "created_by__username")
    date_hierarchy = "created_at"
    inlines = [QuoteFactInline]


@admin.register(QuoteFact)
class QuoteFactAdmin(admin.ModelAdmin):
    list_display = ("case", "fact_key", "value_text", "value_number", "is_current", "created_at")
    list_filter = ("is_current", "fact_key")
    search_fields = ("case__reference", "fact_key")
