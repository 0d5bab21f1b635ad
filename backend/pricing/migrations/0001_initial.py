import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

SERVICE_KEYS = [
    ("DTHC", "DTHC"),
    ("ON_CARRIAGE", "ON_CARRIAGE"),
    ("EMPTY_RETURN", "EMPTY_RETURN"),
    ("DISCHARGE", "DISCHARGE"),
    ("PORT_CHARGES", "PORT_CHARGES"),
    ("TRUCKING", "TRUCKING"),
    ("CUSTOMS", "CUSTOMS"),
    ("PORT_DAKAR_HANDLING", "PORT_DAKAR_HANDLING"),
    ("CUSTOMS_DAKAR", "CUSTOMS_DAKAR"),
    ("CUSTOMS_EXPORT", "CUSTOMS_EXPORT"),
    ("BORDER_FEES", "BORDER_FEES"),
    ("AGENCY", "AGENCY"),
    ("SURVEY", "SURVEY"),
    ("CUSTOMS_BAMAKO", "CUSTOMS_BAMAKO"),
    ("TRANSIT_DOCS", "TRANSIT_DOCS"),
]
QUANTITY_BASES = [("EVP", "EVP"), ("COUNT", "COUNT"), ("TONNE", "TONNE"), ("KG", "KG"), ("FLAT", "FLAT")]
SCOPES = [("import", "Import"), ("export", "Export"), ("transit", "Transit")]
CURRENCIES = [("XOF", "XOF"), ("USD", "USD"), ("EUR", "EUR")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("quotes", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="QuantityRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service_key", models.CharField(choices=SERVICE_KEYS, max_length=32, unique=True)),
                ("quantity_basis", models.CharField(choices=QUANTITY_BASES, max_length=8)),
                ("default_unit", models.CharField(default="FLAT", max_length=16)),
                ("requires_fact_key", models.CharField(blank=True, max_length=64, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
            ],
            options={"db_table": "pricing_quantity_rules"},
        ),
        migrations.CreateModel(
            name="UnitConversion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("container_type", models.CharField(max_length=8, unique=True)),
                ("evp_factor", models.DecimalField(decimal_places=2, max_digits=6)),
            ],
            options={"db_table": "pricing_unit_conversions"},
        ),
        migrations.CreateModel(
            name="PricingRateCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service_key", models.CharField(choices=SERVICE_KEYS, max_length=32)),
                ("scope", models.CharField(choices=SCOPES, max_length=10)),
                ("unit", models.CharField(max_length=16)),
                ("currency", models.CharField(default="XOF", max_length=8)),
                ("value", models.DecimalField(decimal_places=2, max_digits=14)),
                ("source", models.CharField(max_length=128)),
                ("confidence", models.DecimalField(decimal_places=2, default=1, max_digits=3)),
                ("container_type", models.CharField(blank=True, max_length=8, null=True)),
                ("corridor", models.CharField(blank=True, max_length=32, null=True)),
                ("origin_port", models.CharField(blank=True, max_length=64, null=True)),
                ("destination_port", models.CharField(blank=True, max_length=64, null=True)),
                ("origin_country", models.CharField(blank=True, max_length=64, null=True)),
                ("destination_country", models.CharField(blank=True, max_length=64, null=True)),
                ("effective_from", models.DateField(blank=True, null=True)),
                ("effective_to", models.DateField(blank=True, null=True)),
                ("min_charge", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "pricing_rate_cards",
                "indexes": [models.Index(fields=["service_key", "scope"], name="pricing_rc_service_scope_idx")],
            },
        ),
        migrations.CreateModel(
            name="PortTariff",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("provider", models.CharField(max_length=32)),
                ("category", models.CharField(max_length=16)),
                ("operation_type", models.CharField(choices=[("IMPORT", "Import"), ("EXPORT", "Export")], max_length=8)),
                ("classification", models.CharField(max_length=128)),
                ("cargo_type", models.CharField(blank=True, max_length=32, null=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("currency", models.CharField(choices=CURRENCIES, default="XOF", max_length=8)),
                ("effective_date", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("source_document", models.CharField(blank=True, max_length=255, null=True)),
            ],
            options={
                "db_table": "port_tariffs",
                "indexes": [
                    models.Index(fields=["provider", "category", "operation_type"], name="port_tariffs_lookup_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LocalTransportRate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("origin", models.CharField(default="DAKAR", max_length=64)),
                ("destination", models.CharField(max_length=128)),
                ("container_type", models.CharField(max_length=32)),
                ("rate_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("rate_currency", models.CharField(blank=True, max_length=8, null=True)),
                ("provider", models.CharField(blank=True, max_length=128, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("validity_start", models.DateField(blank=True, null=True)),
                ("validity_end", models.DateField(blank=True, null=True)),
            ],
            options={"db_table": "local_transport_rates"},
        ),
        migrations.CreateModel(
            name="ServicePricingAudit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service_line_id", models.CharField(max_length=64)),
                ("service_key", models.CharField(max_length=64)),
                ("suggested_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("currency", models.CharField(max_length=16)),
                ("source", models.CharField(max_length=128)),
                ("confidence", models.DecimalField(decimal_places=3, default=0, max_digits=4)),
                ("explanation", models.TextField(blank=True, default="")),
                ("quantity_used", models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True)),
                ("unit_used", models.CharField(blank=True, max_length=16, null=True)),
                ("rule_id", models.BigIntegerField(blank=True, null=True)),
                ("conversion_used", models.TextField(blank=True, null=True)),
                ("correlation_id", models.CharField(blank=True, default="", max_length=64)),
                ("priced_at", models.DateTimeField(auto_now=True)),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="service_pricing",
                        to="quotes.quotecase",
                    ),
                ),
                (
                    "priced_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "quote_service_pricing",
                "constraints": [
                    models.UniqueConstraint(fields=("case", "service_line_id"), name="uniq_service_pricing_case_line"),
                ],
            },
        ),
    ]
