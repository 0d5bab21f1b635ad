from datetime import date
from decimal import Decimal

from ..dataclasses import LocalTransportRateRow, PortTariffRow
from ..services.fallback import (
    find_fallback,
    find_local_transport_rate,
    find_port_tariff,
    has_fallback,
)
from .factories import context, snapshot


def tariff(id, classification, amount, operation="IMPORT", provider="DPW", effective=date(2024, 1, 1), category="THC",
           cargo_type=None):
    return PortTariffRow(
        id=id,
        provider=provider,
        category=category,
        operation_type=operation,
        classification=classification,
        amount=Decimal(amount),
        effective_date=effective,
        cargo_type=cargo_type,
    )


def transport(id, destination, container_type, amount, currency="XOF"):
    return LocalTransportRateRow(
        id=id,
        origin="DAKAR",
        destination=destination,
        container_type=container_type,
        rate_amount=Decimal(amount),
        rate_currency=currency,
        provider="Transports Diallo",
    )


TARIFFS = [
    tariff(1, "Conteneur 20' plein", "110000"),
    tariff(2, "Conteneur 40' plein", "165000"),
    tariff(3, "Conteneur 20' plein", "95000", operation="EXPORT"),
    tariff(4, "Conteneur 40' plein", "999999", provider="BOLLORE"),
    tariff(5, "Conteneur 40' plein", "5000", category="STORAGE"),
]


class TestPortTariffFallback:
    def test_prefers_classification_matching_container(self):
        quote = find_port_tariff(TARIFFS, context(containers=[("20DV", 1)]))
        assert quote.rate == Decimal("110000")
        assert quote.source == "port_tariff:DPW"
        assert quote.confidence == 0.85
        assert quote.currency == "XOF"

    def test_export_uses_export_tariffs(self):
        quote = find_port_tariff(TARIFFS, context(scope="export", containers=[("20DV", 1)]))
        assert quote.rate == Decimal("95000")

    def test_transit_is_priced_as_import(self):
        quote = find_port_tariff(TARIFFS, context(scope="transit", containers=[("40HC", 1)]))
        assert quote.rate == Decimal("165000")

    def test_most_recent_entry_without_container(self):
        tariffs = [
            tariff(1, "Conteneur 20' plein", "110000", effective=date(2025, 3, 1)),
            tariff(2, "Conteneur 40' plein", "165000", effective=date(2024, 1, 1)),
        ]
        quote = find_port_tariff(tariffs, context())
        assert quote.rate == Decimal("110000")

    def test_cargo_type_wins_over_classification(self):
        tariffs = [
            tariff(1, "Conteneur 20' plein", "110000", effective=date(2025, 1, 1)),
            tariff(2, "Manutention EVP", "98000", cargo_type="CONTENEUR_20"),
        ]
        quote = find_port_tariff(tariffs, context(containers=[("20DV", 1)]))
        assert quote.rate == Decimal("98000")

    def test_forty_five_foot_uses_forty_foot_cargo_type(self):
        tariffs = [
            tariff(1, "THC plein", "110000", cargo_type="CONTENEUR_20", effective=date(2025, 1, 1)),
            tariff(2, "THC plein", "165000", cargo_type="CONTENEUR_40"),
        ]
        quote = find_port_tariff(tariffs, context(containers=[("45HC", 1)]))
        assert quote.rate == Decimal("165000")

    def test_year_in_classification_is_not_a_container_size(self):
        tariffs = [
            tariff(1, "THC tarif 2024", "130000", effective=date(2025, 1, 1)),
            tariff(2, "Conteneur 20 pieds", "110000"),
        ]
        quote = find_port_tariff(tariffs, context(containers=[("20DV", 1)]))
        assert quote.rate == Decimal("110000")

    def test_no_size_match_takes_most_recent(self):
        tariffs = [
            tariff(1, "THC tarif 2024", "130000", effective=date(2025, 1, 1)),
            tariff(2, "Conteneur 40' plein", "165000"),
        ]
        quote = find_port_tariff(tariffs, context(containers=[("20DV", 1)]))
        assert quote.rate == Decimal("130000")

    def test_other_providers_ignored(self):
        assert find_port_tariff([tariff(1, "Conteneur 40'", "1", provider="BOLLORE")], context()) is None


class TestLocalTransportFallback:
    RATES = [
        transport(1, "BAMAKO", "20' DRY", "900000"),
        transport(2, "BAMAKO", "40' DRY", "1400000"),
        transport(3, "KAYES NORD", "40' DRY", "800000"),
        transport(4, "KAYES SUD", "40' DRY", "850000"),
        transport(5, "TAMBACOUNDA (SN)", "LOW BED", "600000"),
    ]

    def test_exact_destination_and_container_family(self):
        quote = find_local_transport_rate(self.RATES, context(containers=[("40HC", 1)], destination_city="Bamako"))
        assert quote.rate == Decimal("1400000")
        assert quote.source == "local_transport_rate"
        assert quote.confidence == 0.90

    def test_unique_partial_destination(self):
        quote = find_local_transport_rate(self.RATES, context(containers=[("FLAT", 1)], destination_city="Tambacounda"))
        assert quote.rate == Decimal("600000")

    def test_ambiguous_partial_destination(self):
        assert find_local_transport_rate(self.RATES, context(containers=[("40HC", 1)], destination_city="Kayes")) is None

    def test_never_in_air_mode(self):
        ctx = context(containers=[("40HC", 1)], destination_city="Bamako")
        assert find_local_transport_rate(self.RATES, ctx, is_air_mode=True) is None

    def test_requires_destination_city(self):
        assert find_local_transport_rate(self.RATES, context(containers=[("40HC", 1)])) is None


class TestFallbackRegistry:
    def test_allow_list(self):
        assert has_fallback("DTHC")
        assert has_fallback("TRUCKING")
        assert not has_fallback("CUSTOMS")

    def test_non_listed_key_has_no_fallback(self):
        snap = snapshot(port_tariffs=TARIFFS)
        assert find_fallback("CUSTOMS", context(containers=[("40HC", 1)]), snap) is None

    def test_dthc_reads_port_tariffs(self):
        snap = snapshot(port_tariffs=TARIFFS)
        quote = find_fallback("DTHC", context(containers=[("40HC", 1)]), snap)
        assert quote.rate == Decimal("165000")
        assert quote.confidence < 0.9
