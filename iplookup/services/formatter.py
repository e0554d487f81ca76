"""Enrichment of raw API responses into detail models."""

from typing import Any

from iplookup.models.details import Details, DetailsCore, DetailsLite, DetailsPlus
from iplookup.services.reference_tables import ReferenceTables, country_flag, country_flag_url


class DetailsFormatter:
    """Adds country name, EU membership, flag, currency and continent data.

    Raw responses are never mutated; each method works on a copy.
    """

    def __init__(self, tables: ReferenceTables):
        self.tables = tables

    def _country_fields(self, country_code: str | None) -> dict[str, Any]:
        if not country_code:
            return {
                "country_name": None,
                "is_eu": None,
                "country_flag": None,
                "country_flag_url": None,
                "country_currency": None,
            }
        return {
            "country_name": self.tables.country_name(country_code),
            "is_eu": self.tables.is_eu(country_code),
            "country_flag": country_flag(country_code),
            "country_flag_url": country_flag_url(country_code),
            "country_currency": self.tables.currency(country_code),
        }

    def format_details(self, raw: dict[str, Any]) -> Details:
        """Format a standard API response."""
        details = dict(raw)
        country = details.get("country")
        details.update(self._country_fields(country))
        details["continent"] = self.tables.continent(country)

        loc = details.get("loc")
        if loc and "," in loc:
            details["latitude"], details["longitude"] = loc.split(",", 1)
        else:
            details["latitude"] = None
            details["longitude"] = None

        return Details.from_raw(details)

    def format_lite(self, raw: dict[str, Any]) -> DetailsLite:
        """Format a Lite API response; `continent` stays the API's own string."""
        details = dict(raw)
        details.update(self._country_fields(details.get("country_code")))
        return DetailsLite.from_raw(details)

    def format_core(self, raw: dict[str, Any], model: type[DetailsCore] = DetailsCore) -> DetailsCore:
        """Format a Core (or Plus) API response, enriching the nested `geo` block."""
        details = dict(raw)
        geo = details.get("geo")
        if isinstance(geo, dict):
            geo = dict(geo)
            country_code = geo.get("country_code")
            geo.update(self._country_fields(country_code))
            geo["continent_info"] = self.tables.continent(country_code)
            details["geo"] = geo
        return model.from_raw(details)

    def format_plus(self, raw: dict[str, Any]) -> DetailsPlus:
        return self.format_core(raw, model=DetailsPlus)
