import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="QuoteCase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("NEW", "New"),
                            ("FACTS_PARTIAL", "Facts partial"),
                            ("READY_TO_PRICE", "Ready to price"),
                            ("PRICED", "Priced"),
                            ("QUOTED", "Quoted"),
                        ],
                        default="NEW",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quote_cases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "quote_cases",
                "indexes": [models.Index(fields=["created_by", "-created_at"], name="quote_cases_created_4c1e2a_idx")],
            },
        ),
        migrations.CreateModel(
            name="QuoteFact",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("fact_key", models.CharField(max_length=64)),
                ("value_text", models.TextField(blank=True, null=True)),
                ("value_number", models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ("value_json", models.JSONField(blank=True, null=True)),
                ("source_type", models.CharField(blank=True, max_length=32, null=True)),
                ("is_current", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="facts",
                        to="quotes.quotecase",
                    ),
                ),
            ],
            options={
                "db_table": "quote_facts",
                "indexes": [models.Index(fields=["case", "fact_key", "is_current"], name="quote_facts_case_id_8d2f71_idx")],
            },
        ),
    ]
