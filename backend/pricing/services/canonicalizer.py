"""
Canonical spellings for currencies and units.

Currencies are a closed set: anything that does not map onto it is rejected
(``None``) and the caller must treat that as a validation failure. Units are
fail-open: an unknown spelling is upper-cased and passed through, so it simply
never matches a rate card.
"""
from __future__ import annotations

import re
from typing import Optional

from ..types import Currency, Unit

CURRENCY_ALIASES = {
    "FCFA": Currency.XOF.value,
    "CFA": Currency.XOF.value,
    "F CFA": Currency.XOF.value,
    "FRANC CFA": Currency.XOF.value,
    "EURO": Currency.EUR.value,
    "EUROS": Currency.EUR.value,
    "€": Currency.EUR.value,
    "US$": Currency.USD.value,
    "$": Currency.USD.value,
}
VALID_CURRENCIES = frozenset(c.value for c in Currency)

# Keys are lower-case; lookups fold case and collapse whitespace.
UNIT_ALIASES = {
    "evp": Unit.EVP.value,
    "teu": Unit.EVP.value,
    "teus": Unit.EVP.value,
    "tonne": Unit.TON.value,
    "tonnes": Unit.TON.value,
    "t": Unit.TON.value,
    "ton": Unit.TON.value,
    "tons": Unit.TON.value,
    "tm": Unit.TON.value,
    "déclaration": Unit.DECL.value,
    "déclarations": Unit.DECL.value,
    "declaration": Unit.DECL.value,
    "declarations": Unit.DECL.value,
    "decl": Unit.DECL.value,
    "voyage": Unit.VOYAGE.value,
    "voyages": Unit.VOYAGE.value,
    "trip": Unit.VOYAGE.value,
    "trips": Unit.VOYAGE.value,
    "forfait": Unit.FLAT.value,
    "forfaits": Unit.FLAT.value,
    "flat": Unit.FLAT.value,
    "lump sum": Unit.FLAT.value,
    "lumpsum": Unit.FLAT.value,
    "kg": Unit.KG.value,
    "kgs": Unit.KG.value,
    "kilo": Unit.KG.value,
    "kilos": Unit.KG.value,
    "kilogram": Unit.KG.value,
    "kilograms": Unit.KG.value,
    "kilogramme": Unit.KG.value,
    "kilogrammes": Unit.KG.value,
    "per kg": Unit.KG.value,
}


def normalize_currency(raw) -> Optional[str]:
    """Return the ISO code for ``raw`` when it is a supported currency, else None."""
    if not isinstance(raw, str):
        return None
    upper = re.sub(r"\s+", " ", raw.strip().upper())
    mapped = CURRENCY_ALIASES.get(upper, upper)
    return mapped if mapped in VALID_CURRENCIES else None


def normalize_unit(raw) -> str:
    """Map a free-form unit spelling onto the canonical unit codes.

    Unrecognized input is returned upper-cased rather than rejected.
    """
    text = re.sub(r"\s+", " ", str(raw or "").strip())
    folded = text.lower()
    if folded in UNIT_ALIASES:
        return UNIT_ALIASES[folded]
    # "per_kg", "per-kg" and friends
    collapsed = re.sub(r"[\s_\-/]+", " ", folded)
    if collapsed in UNIT_ALIASES:
        return UNIT_ALIASES[collapsed]
    return text.upper()
