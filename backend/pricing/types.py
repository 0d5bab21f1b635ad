from enum import Enum
from typing import Optional


class ServiceKey(str, Enum):
    DTHC = "DTHC"
    ON_CARRIAGE = "ON_CARRIAGE"
    EMPTY_RETURN = "EMPTY_RETURN"
    DISCHARGE = "DISCHARGE"
    PORT_CHARGES = "PORT_CHARGES"
    TRUCKING = "TRUCKING"
    CUSTOMS = "CUSTOMS"
    PORT_DAKAR_HANDLING = "PORT_DAKAR_HANDLING"
    CUSTOMS_DAKAR = "CUSTOMS_DAKAR"
    CUSTOMS_EXPORT = "CUSTOMS_EXPORT"
    BORDER_FEES = "BORDER_FEES"
    AGENCY = "AGENCY"
    SURVEY = "SURVEY"
    CUSTOMS_BAMAKO = "CUSTOMS_BAMAKO"
    TRANSIT_DOCS = "TRANSIT_DOCS"


class Currency(str, Enum):
    XOF = "XOF"
    USD = "USD"
    EUR = "EUR"


class Unit(str, Enum):
    EVP = "EVP"
    TON = "TON"
    DECL = "DECL"
    VOYAGE = "VOYAGE"
    FLAT = "FLAT"
    KG = "KG"


class QuantityBasis(str, Enum):
    EVP = "EVP"
    COUNT = "COUNT"
    TONNE = "TONNE"
    KG = "KG"
    FLAT = "FLAT"


class Scope(str, Enum):
    IMPORT = "import"
    EXPORT = "export"
    TRANSIT = "transit"


class PricingSource(str, Enum):
    """Source tags written on lines that could not be priced."""
    UNKNOWN_SERVICE = "unknown_service"
    INVALID_CURRENCY = "invalid_currency"
    INVALID_QUANTITY = "invalid_quantity"
    MISSING_QUANTITY = "missing_quantity"
    UNIT_MISMATCH = "unit_mismatch"
    NO_MATCH = "no_match"
    PRICING_ERROR = "pricing_error"


SERVICE_KEY_CHOICES = [(k.value, k.value) for k in ServiceKey]
CURRENCY_CHOICES = [(c.value, c.value) for c in Currency]
QUANTITY_BASIS_CHOICES = [(b.value, b.value) for b in QuantityBasis]
SCOPE_CHOICES = [(s.value, s.value.title()) for s in Scope]


def parse_service_key(raw) -> Optional[ServiceKey]:
    """Return the whitelisted ServiceKey for ``raw`` or None (no case folding)."""
    if not isinstance(raw, str):
        return None
    try:
        return ServiceKey(raw)
    except ValueError:
        return None


def parse_quantity_basis(raw) -> Optional[QuantityBasis]:
    try:
        return QuantityBasis((raw or "").strip().upper())
    except ValueError:
        return None
