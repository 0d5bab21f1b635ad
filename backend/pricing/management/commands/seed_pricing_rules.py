# backend/pricing/management/commands/seed_pricing_rules.py

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from pricing.models import QuantityRule, UnitConversion
from pricing.types import QuantityBasis, ServiceKey, Unit

EVP_CONVERSIONS = {
    "20DV": Decimal("1"),
    "20DC": Decimal("1"),
    "20GP": Decimal("1"),
    "20ST": Decimal("1"),
    "20RF": Decimal("1"),
    "20OT": Decimal("1"),
    "20FR": Decimal("1"),
    "40DV": Decimal("2"),
    "40DC": Decimal("2"),
    "40GP": Decimal("2"),
    "40ST": Decimal("2"),
    "40HC": Decimal("2"),
    "40HQ": Decimal("2"),
    "40RF": Decimal("2"),
    "40OT": Decimal("2"),
    "40FR": Decimal("2"),
    "45HC": Decimal("2.25"),
    "45HQ": Decimal("2.25"),
}

# service key -> (quantity basis, default unit)
QUANTITY_RULES = {
    ServiceKey.DTHC: (QuantityBasis.EVP, Unit.EVP),
    ServiceKey.DISCHARGE: (QuantityBasis.EVP, Unit.EVP),
    ServiceKey.PORT_DAKAR_HANDLING: (QuantityBasis.EVP, Unit.EVP),
    ServiceKey.EMPTY_RETURN: (QuantityBasis.COUNT, Unit.VOYAGE),
    ServiceKey.TRUCKING: (QuantityBasis.COUNT, Unit.VOYAGE),
    ServiceKey.ON_CARRIAGE: (QuantityBasis.COUNT, Unit.VOYAGE),
    ServiceKey.BORDER_FEES: (QuantityBasis.COUNT, Unit.VOYAGE),
    ServiceKey.PORT_CHARGES: (QuantityBasis.TONNE, Unit.TON),
    ServiceKey.CUSTOMS: (QuantityBasis.FLAT, Unit.DECL),
    ServiceKey.CUSTOMS_DAKAR: (QuantityBasis.FLAT, Unit.DECL),
    ServiceKey.CUSTOMS_EXPORT: (QuantityBasis.FLAT, Unit.DECL),
    ServiceKey.CUSTOMS_BAMAKO: (QuantityBasis.FLAT, Unit.DECL),
    ServiceKey.TRANSIT_DOCS: (QuantityBasis.FLAT, Unit.DECL),
    ServiceKey.AGENCY: (QuantityBasis.FLAT, Unit.FLAT),
    ServiceKey.SURVEY: (QuantityBasis.FLAT, Unit.FLAT),
}


def seed_unit_conversions():
    for container_type, factor in EVP_CONVERSIONS.items():
        UnitConversion.objects.update_or_create(
            container_type=container_type,
            defaults={"evp_factor": factor},
        )


def seed_quantity_rules():
    for key, (basis, unit) in QUANTITY_RULES.items():
        QuantityRule.objects.update_or_create(
            service_key=key.value,
            defaults={"quantity_basis": basis.value, "default_unit": unit.value},
        )


class Command(BaseCommand):
    help = "Seeds the default quantity rules and EVP conversion factors (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete existing quantity rules and conversions before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options["reset"]:
            self.stdout.write(self.style.WARNING("Removing existing quantity rules and EVP conversions..."))
            QuantityRule.objects.all().delete()
            UnitConversion.objects.all().delete()

        self.stdout.write("Seeding EVP conversions...")
        seed_unit_conversions()

        self.stdout.write("Seeding quantity rules...")
        seed_quantity_rules()

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(QUANTITY_RULES)} quantity rules and {len(EVP_CONVERSIONS)} EVP conversions."
        ))
