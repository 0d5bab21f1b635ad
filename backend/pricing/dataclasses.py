from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .types import Scope


@dataclass(frozen=True)
class ServiceLineRequest:
    id: str
    service_key: str
    unit: str = ""
    # raw client value; classified (number, bounds) when the line is priced
    quantity: Any = None
    currency: str = ""


@dataclass(frozen=True)
class ContainerLine:
    type: str
    quantity: int = 1

    @property
    def nominal_size_ft(self) -> Optional[int]:
        """Leading digits of the container code, e.g. 45 for ``45HC``."""
        digits = ""
        for ch in self.type:
            if not ch.isdigit():
                break
            digits += ch
        return int(digits) if digits else None


@dataclass(frozen=True)
class PricingContext:
    """Read-only snapshot of the shipment facts used for one pricing run."""
    scope: str = Scope.IMPORT.value
    containers: Tuple[ContainerLine, ...] = ()
    corridor: Optional[str] = None
    origin_port: Optional[str] = None
    destination_port: Optional[str] = None
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    destination_city: Optional[str] = None
    weight_kg: Optional[Decimal] = None
    transport_mode: Optional[str] = None
    fact_keys: frozenset = frozenset()

    @property
    def container_type(self) -> Optional[str]:
        return self.containers[0].type if self.containers else None

    @property
    def container_count(self) -> int:
        return sum(c.quantity for c in self.containers)

    @property
    def is_air_mode(self) -> bool:
        return self.transport_mode == "AIR"


@dataclass(frozen=True)
class QuantityRuleRow:
    id: Optional[int]
    service_key: str
    quantity_basis: str
    default_unit: str = "FLAT"
    requires_fact_key: Optional[str] = None


@dataclass(frozen=True)
class RateCardRow:
    id: int
    service_key: str
    scope: str
    unit: str
    currency: str
    value: Decimal
    source: str
    confidence: Decimal = Decimal("1")
    container_type: Optional[str] = None
    corridor: Optional[str] = None
    origin_port: Optional[str] = None
    destination_port: Optional[str] = None
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    min_charge: Optional[Decimal] = None


@dataclass(frozen=True)
class PortTariffRow:
    id: int
    provider: str
    category: str
    operation_type: str
    classification: str
    amount: Decimal
    currency: str = "XOF"
    effective_date: Optional[date] = None
    cargo_type: Optional[str] = None
    source_document: Optional[str] = None


@dataclass(frozen=True)
class LocalTransportRateRow:
    id: int
    origin: str
    destination: str
    container_type: str
    rate_amount: Decimal
    rate_currency: Optional[str] = None
    provider: Optional[str] = None


@dataclass(frozen=True)
class PricingSnapshot:
    """Rule tables and catalogs loaded once per run; never re-queried per line."""
    quantity_rules: Mapping[str, QuantityRuleRow] = field(default_factory=lambda: MappingProxyType({}))
    evp_conversions: Mapping[str, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    rate_cards: Tuple[RateCardRow, ...] = ()
    port_tariffs: Tuple[PortTariffRow, ...] = ()
    local_transport_rates: Tuple[LocalTransportRateRow, ...] = ()
    as_of: Optional[date] = None


@dataclass(frozen=True)
class QuantityResult:
    quantity: Optional[Decimal]
    unit: str
    rule_id: Optional[int]
    trace: str
    conversion_used: Optional[str] = None


@dataclass(frozen=True)
class RateCardMatch:
    card: RateCardRow
    score: int
    explanation: str
    optional_hits: int = 0

    @property
    def confidence(self) -> float:
        return min(self.score, 100) / 100


@dataclass(frozen=True)
class FallbackQuote:
    rate: Decimal
    currency: str
    source: str
    confidence: float
    explanation: str


@dataclass(frozen=True)
class PricedLine:
    id: str
    rate: Optional[Decimal]
    currency: str
    source: str
    confidence: float
    explanation: str
    quantity_used: Optional[Decimal] = None
    unit_used: Optional[str] = None
    rule_id: Optional[int] = None
    conversion_used: Optional[str] = None

    @property
    def is_priced(self) -> bool:
        return self.rate is not None


@dataclass
class PricingResult:
    priced_lines: List[PricedLine] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, Any]:
        priced = sum(1 for line in self.priced_lines if line.is_priced)
        return {
            "priced": priced,
            "missing": len(self.missing),
            "total": len(self.priced_lines),
        }
