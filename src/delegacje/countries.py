"""Country diet-rate table.

Reference data only: a trip reads its country once, at creation, and keeps
a frozen copy of the rate and hotel limit from then on.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import yaml

from delegacje.core import to_decimal
from delegacje.errors import UnknownCountryError


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    name_en: str
    currency: str
    daily_rate: Decimal
    accommodation_limit: Decimal


def _parse_country(entry: Dict[str, Any]) -> Country:
    return Country(
        code=str(entry["code"]).upper(),
        name=str(entry["name"]),
        name_en=str(entry["name_en"]),
        currency=str(entry["currency"]).upper(),
        daily_rate=to_decimal(str(entry["daily_rate"])),
        accommodation_limit=to_decimal(str(entry["accommodation_limit"])),
    )


def load_countries(path: Optional[Path | str] = None) -> Dict[str, Country]:
    """Load the rate table from YAML; the packaged table is used by default."""
    if path is None:
        text = resources.files("delegacje").joinpath("data/countries.yaml").read_text(encoding="utf-8")
    else:
        text = Path(path).read_text(encoding="utf-8")

    loaded = yaml.safe_load(text)
    if not isinstance(loaded, dict) or not isinstance(loaded.get("countries"), list):
        msg = f"Country table must contain a 'countries' list: {path or 'data/countries.yaml'}"
        raise ValueError(msg)

    countries = [_parse_country(entry) for entry in loaded["countries"]]
    return {country.code: country for country in countries}


@lru_cache
def default_countries() -> Mapping[str, Country]:
    """The packaged table, shared process-wide as a read-only view."""
    return MappingProxyType(load_countries())


def find_country(code: str, table: Optional[Mapping[str, Country]] = None) -> Optional[Country]:
    return (table if table is not None else default_countries()).get(code.strip().upper())


def get_country(code: str, table: Optional[Mapping[str, Country]] = None) -> Country:
    country = find_country(code, table)
    if country is None:
        raise UnknownCountryError(code)
    return country


def search_countries(query: str, table: Optional[Mapping[str, Country]] = None) -> List[Country]:
    q = query.strip().lower()
    source = table if table is not None else default_countries()
    return [
        country
        for country in source.values()
        if q in country.name.lower() or q in country.name_en.lower() or q in country.code.lower()
    ]


__all__ = [
    "Country",
    "default_countries",
    "find_country",
    "get_country",
    "load_countries",
    "search_countries",
]
