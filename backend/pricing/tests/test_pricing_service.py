"""
Orchestrator tests run against in-memory snapshots; no database needed.
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from ..dataclasses import PortTariffRow, ServiceLineRequest
from ..services.pricing_service import PricingOptions, PricingService
from .factories import card, context, line, rule, snapshot

RULES = [
    rule("DTHC", "EVP", "EVP", id=1),
    rule("TRUCKING", "COUNT", "VOYAGE", id=2),
    rule("PORT_CHARGES", "TONNE", "TON", id=3),
    rule("CUSTOMS", "FLAT", "DECL", id=4),
]
THC_TARIFF = PortTariffRow(
    id=11,
    provider="DPW",
    category="THC",
    operation_type="IMPORT",
    classification="Conteneur 40' plein",
    amount=Decimal("165000"),
    effective_date=date(2024, 1, 1),
)
SEA_CONTEXT = context(containers=[("20DV", 2), ("40HC", 1)], destination_city="Bamako", corridor="DAKAR_BAMAKO")


def make_service(cards=(), tariffs=(), ctx=SEA_CONTEXT, options=None):
    return PricingService(snapshot(RULES, cards, tariffs), ctx, options)


class TestLineValidation:
    def test_unknown_service_key(self):
        priced = make_service().price_line(line("l1", "FREIGHT"))
        assert priced.rate is None
        assert priced.source == "unknown_service"
        assert priced.currency == "XOF"
        assert priced.confidence == 0

    def test_invalid_currency_keeps_raw_value(self):
        priced = make_service().price_line(line("l1", "DTHC", currency="GBP"))
        assert priced.source == "invalid_currency"
        assert priced.currency == "GBP"

    def test_quantity_above_bound(self):
        priced = make_service([card()]).price_line(line("l1", "DTHC", quantity=15000))
        assert priced.rate is None
        assert priced.source == "invalid_quantity"

    def test_negative_and_missing_quantity(self):
        service = make_service([card()])
        assert service.price_line(line("l1", "DTHC", quantity=-1)).source == "invalid_quantity"
        assert service.price_line(line("l2", "DTHC", quantity=None)).source == "invalid_quantity"

    def test_non_numeric_quantity_is_invalid(self):
        service = make_service([card()])
        for raw in ("abc", "", True, float("nan")):
            priced = service.price_line(ServiceLineRequest(id="l1", service_key="DTHC", quantity=raw, currency="XOF"))
            assert priced.source == "invalid_quantity"
            assert "is not a number" in priced.explanation

    def test_bound_is_configurable(self):
        service = make_service([card()], options=PricingOptions(max_line_quantity=Decimal("100")))
        assert service.price_line(line("l1", "DTHC", quantity=101)).source == "invalid_quantity"

    def test_air_mode_count_basis_is_missing_quantity(self):
        ctx = context(containers=[("40HC", 2)], transport_mode="AIR")
        priced = make_service([card(service_key="TRUCKING", unit="VOYAGE")], ctx=ctx).price_line(line("l1", "TRUCKING"))
        assert priced.rate is None
        assert priced.source == "missing_quantity"
        assert priced.quantity_used is None


class TestMatching:
    def test_direct_match_uses_resolved_quantity(self):
        priced = make_service([card(container_type="20DV")]).price_line(line("l1", "DTHC", quantity=1))
        assert priced.rate == Decimal("150000")
        assert priced.source == "rate_card:dpw_2025"
        assert priced.quantity_used == Decimal("4")
        assert priced.unit_used == "EVP"
        assert priced.rule_id == 1
        assert priced.conversion_used == "2x20DV@1 + 1x40HC@2"
        assert priced.explanation.startswith("match: DTHC+import+20DV")

    def test_fcfa_request_matches_xof_card(self):
        priced = make_service([card()]).price_line(line("l1", "DTHC", currency="FCFA"))
        assert priced.is_priced
        assert priced.currency == "XOF"

    def test_request_unit_matching_billing_unit_is_priced(self):
        cards = [card(service_key="CUSTOMS", unit="DECL", value="25000")]
        priced = make_service(cards).price_line(line("l1", "CUSTOMS", unit="declaration"))
        assert priced.rate == Decimal("25000")
        assert priced.unit_used == "DECL"

    def test_request_unit_differing_from_billing_unit_is_unpriced(self):
        ctx = context(containers=[("40HC", 2)])
        cards = [
            card(id=1, service_key="TRUCKING", unit="EVP", value="100000"),
            card(id=2, service_key="TRUCKING", unit="VOYAGE", value="400000"),
        ]
        priced = make_service(cards, ctx=ctx).price_line(line("l1", "TRUCKING", unit="EVP"))
        assert priced.rate is None
        assert priced.source == "unit_mismatch"
        assert priced.quantity_used == Decimal("2")
        assert priced.unit_used == "VOYAGE"
        assert "billed per VOYAGE" in priced.explanation

    def test_no_match_without_fallback(self):
        priced = make_service().price_line(line("l1", "CUSTOMS"))
        assert priced.source == "no_match"
        assert priced.quantity_used == Decimal("1")
        assert "scope=import" in priced.explanation


class TestFallback:
    def test_dthc_falls_back_to_port_tariff(self):
        priced = make_service(tariffs=[THC_TARIFF]).price_line(line("l1", "DTHC"))
        assert priced.rate == Decimal("165000")
        assert priced.source.startswith("port_tariff:")
        assert priced.quantity_used == Decimal("4")

    def test_fallback_confidence_below_equivalent_direct_match(self):
        ctx = context(containers=[("40HC", 1)])
        direct = make_service([card(container_type="40HC")], ctx=ctx).price_line(line("l1", "DTHC"))
        fallback = make_service(tariffs=[THC_TARIFF], ctx=ctx).price_line(line("l1", "DTHC"))
        assert fallback.confidence < direct.confidence

    def test_rate_card_beats_fallback(self):
        priced = make_service([card()], tariffs=[THC_TARIFF]).price_line(line("l1", "DTHC"))
        assert priced.source == "rate_card:dpw_2025"


    def test_fallback_only_consulted_for_allow_listed_keys(self):
        with patch("pricing.services.pricing_service.find_fallback") as find_fallback:
            priced = make_service(tariffs=[THC_TARIFF]).price_line(line("l1", "CUSTOMS"))
        assert priced.source == "no_match"
        find_fallback.assert_not_called()

class TestBatch:
    LINES = [
        line("l1", "DTHC"),
        line("l2", "FREIGHT"),
        line("l3", "CUSTOMS", currency="EUR"),
        line("l4", "DTHC", quantity=15000),
    ]

    def test_completeness_and_summary(self):
        result = make_service([card()]).price_lines(self.LINES)
        assert [p.id for p in result.priced_lines] == ["l1", "l2", "l3", "l4"]
        assert result.missing == ["FREIGHT", "CUSTOMS", "DTHC"]
        assert result.summary == {"priced": 1, "missing": 3, "total": 4}

    def test_every_line_failing_still_returns_all_lines(self):
        lines = [line(f"l{i}", "NOPE") for i in range(5)]
        result = make_service().price_lines(lines)
        assert len(result.priced_lines) == 5
        assert result.summary == {"priced": 0, "missing": 5, "total": 5}

    def test_deterministic(self):
        cards = [card(id=5), card(id=2), card(id=9, container_type="20DV")]
        first = make_service(cards, [THC_TARIFF]).price_lines(self.LINES)
        second = make_service(list(reversed(cards)), [THC_TARIFF]).price_lines(self.LINES)
        assert first.priced_lines == second.priced_lines

    def test_unexpected_error_is_isolated_to_the_line(self):
        with patch("pricing.services.pricing_service.find_best_rate_card", side_effect=RuntimeError("boom")):
            result = make_service([card()]).price_lines(self.LINES)
        assert len(result.priced_lines) == 4
        assert result.priced_lines[0].source == "pricing_error"
        assert result.priced_lines[0].rate is None
        assert result.priced_lines[1].source == "unknown_service"
