from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase

from quotes.models import QuoteCase, QuoteFact

from ..dataclasses import PricedLine
from ..models import PortTariff, PricingRateCard, QuantityRule, ServicePricingAudit, UnitConversion
from ..services.audit import record_pricing_decisions
from ..services.pricing_service import price_service_lines, run_pricing
from .factories import line

CORRELATION_ID = "0b6f3f44-5f0e-4a3c-8a4c-2b1f0c6d9e11"


class RunPricingTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = get_user_model().objects.create_user(username="awa", password="x", role="sales")
        cls.case = QuoteCase.objects.create(reference="Q-2025-0001", created_by=cls.user)
        QuoteFact.objects.create(case=cls.case, fact_key="service.flow_type", value_text="SEA_FCL_IMPORT")
        QuoteFact.objects.create(
            case=cls.case, fact_key="cargo.containers",
            value_json=[{"type": "20DV", "quantity": 2}, {"type": "40HC", "quantity": 1}],
        )
        QuoteFact.objects.create(case=cls.case, fact_key="routing.destination_city", value_text="Bamako")
        QuoteFact.objects.create(case=cls.case, fact_key="service.flow_type", value_text="AIR_EXPORT", is_current=False)

        UnitConversion.objects.create(container_type="20DV", evp_factor=Decimal("1"))
        UnitConversion.objects.create(container_type="40HC", evp_factor=Decimal("2"))
        QuantityRule.objects.create(service_key="DTHC", quantity_basis="EVP", default_unit="EVP")
        QuantityRule.objects.create(service_key="TRUCKING", quantity_basis="COUNT", default_unit="VOYAGE")
        cls.card = PricingRateCard.objects.create(
            service_key="TRUCKING", scope="import", unit="VOYAGE", currency="XOF",
            value=Decimal("1250000"), source="rate_card:transports_2025", corridor="DAKAR_BAMAKO",
        )
        PortTariff.objects.create(
            provider="DPW", category="THC", operation_type="IMPORT",
            classification="Conteneur 20'", amount=Decimal("110000"),
        )

    def test_prices_from_case_facts(self):
        result = run_pricing(
            self.case,
            [line("l1", "TRUCKING"), line("l2", "DTHC", currency="FCFA"), line("l3", "AGENCY")],
            correlation_id=CORRELATION_ID,
            user=self.user,
        )
        trucking, thc, agency = result.priced_lines
        assert trucking.rate == Decimal("1250000.00")
        assert trucking.quantity_used == Decimal("1")
        assert thc.source == "port_tariff:DPW"
        assert thc.quantity_used == Decimal("4")
        assert agency.source == "no_match"
        assert result.missing == ["AGENCY"]

    def test_audit_rows_written(self):
        run_pricing(self.case, [line("l1", "TRUCKING"), line("l2", "FREIGHT")], correlation_id=CORRELATION_ID, user=self.user)
        rows = {r.service_line_id: r for r in ServicePricingAudit.objects.filter(case=self.case)}
        assert set(rows) == {"l1", "l2"}
        assert rows["l1"].suggested_rate == Decimal("1250000.00")
        assert rows["l1"].source == "rate_card:transports_2025"
        assert rows["l1"].priced_by == self.user
        assert rows["l1"].correlation_id == CORRELATION_ID
        assert rows["l2"].suggested_rate is None
        assert rows["l2"].service_key == "FREIGHT"
        assert rows["l2"].source == "unknown_service"

    def test_repricing_overwrites_previous_decision(self):
        run_pricing(self.case, [line("l1", "TRUCKING")])
        PricingRateCard.objects.filter(pk=self.card.pk).update(value=Decimal("1300000"))
        run_pricing(self.case, [line("l1", "TRUCKING")])
        rows = ServicePricingAudit.objects.filter(case=self.case, service_line_id="l1")
        assert rows.count() == 1
        assert rows.get().suggested_rate == Decimal("1300000.00")

    def test_audit_failure_does_not_change_result(self):
        with patch("pricing.services.audit.ServicePricingAudit.objects.bulk_create", side_effect=DatabaseError("down")):
            with self.assertLogs("pricing.services.audit", level="WARNING"):
                result = run_pricing(self.case, [line("l1", "TRUCKING")])
        assert result.priced_lines[0].is_priced
        assert not ServicePricingAudit.objects.filter(case=self.case).exists()

    def test_duplicate_line_ids_keep_last(self):
        lines = [line("l1", "TRUCKING"), line("l1", "FREIGHT")]
        priced = [
            PricedLine(id="l1", rate=Decimal("1"), currency="XOF", source="rate_card:a", confidence=0.9, explanation="a"),
            PricedLine(id="l1", rate=None, currency="XOF", source="unknown_service", confidence=0.0, explanation="b"),
        ]
        assert record_pricing_decisions(self.case, lines, priced) == 1
        assert ServicePricingAudit.objects.get(case=self.case).source == "unknown_service"

    def test_accepts_request_dicts(self):
        result = price_service_lines(
            self.case,
            [{"id": "l9", "service": "TRUCKING", "unit": "voyage", "quantity": Decimal("1"), "currency": "xof"}],
        )
        assert result.summary == {"priced": 1, "missing": 0, "total": 1}
