"""Country reference tables used to enrich lookup responses."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from iplookup.utils.logging import get_logger

# Constants
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
COUNTRIES_FILE = "countries.json"
EU_FILE = "eu.json"
CURRENCY_FILE = "currency.json"
CONTINENT_FILE = "continent.json"

COUNTRY_FLAGS_URL = "https://cdn.ipinfo.io/static/images/countries-flags/"
# Regional indicator symbol letter A
_REGIONAL_INDICATOR_A = 0x1F1E6

logger = get_logger(__name__)


def country_flag(country_code: str) -> dict[str, str] | None:
    """Build the flag emoji and its code points for a two-letter country code."""
    if not country_code or len(country_code) != 2 or not country_code.isascii() or not country_code.isalpha():
        return None
    points = [_REGIONAL_INDICATOR_A + ord(c) - ord("A") for c in country_code.upper()]
    return {
        "emoji": "".join(chr(p) for p in points),
        "unicode": " ".join(f"U+{p:X}" for p in points),
    }


def country_flag_url(country_code: str) -> str:
    return f"{COUNTRY_FLAGS_URL}{country_code}.svg"


@dataclass
class ReferenceTables:
    """Country names, EU membership, currencies and continents keyed by country code."""

    countries: dict[str, str] = field(default_factory=dict)
    eu_countries: frozenset[str] = frozenset()
    currencies: dict[str, dict] = field(default_factory=dict)
    continents: dict[str, dict] = field(default_factory=dict)

    @classmethod
    async def load(cls, data_dir: str | Path | None = None) -> "ReferenceTables":
        """Load all tables from `data_dir` (bundled data by default).

        Raises:
            FileNotFoundError: If a table file is missing.
            ValueError: If a table file is not valid JSON.
        """
        base = Path(data_dir) if data_dir else DEFAULT_DATA_DIR

        countries = await _read_json(base / COUNTRIES_FILE)
        eu = await _read_json(base / EU_FILE)
        currencies = await _read_json(base / CURRENCY_FILE)
        continents = await _read_json(base / CONTINENT_FILE)

        logger.info(f"Loaded reference tables from {base}: {len(countries)} countries")
        return cls(
            countries=countries,
            eu_countries=frozenset(eu),
            currencies=currencies,
            continents=continents,
        )

    def country_name(self, country_code: str | None) -> str | None:
        return self.countries.get(country_code) if country_code else None

    def is_eu(self, country_code: str | None) -> bool:
        return country_code in self.eu_countries

    def currency(self, country_code: str | None) -> dict | None:
        return self.currencies.get(country_code) if country_code else None

    def continent(self, country_code: str | None) -> dict | None:
        return self.continents.get(country_code) if country_code else None


async def _read_json(path: Path):
    async with aiofiles.open(path, encoding="utf-8") as f:
        content = await f.read()
    return json.loads(content)
