"""Pydantic models holding formatted lookup results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _DetailsBase(BaseModel):
    """Common behaviour: unknown API fields are kept, `all` holds the raw mapping."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ip: str | None = None
    bogon: bool | None = None
    all: dict[str, Any] = Field(default_factory=dict, description="Formatted data as a plain mapping")

    @classmethod
    def from_raw(cls, raw: dict[str, Any]):
        """Build the model from a formatted mapping, keeping it under `all`."""
        return cls.model_validate({**raw, "all": dict(raw)})

    def __str__(self) -> str:
        return self.model_dump_json(by_alias=True, exclude={"all"}, exclude_none=True)


class Details(_DetailsBase):
    """Formatted data for a single address from the standard API."""

    hostname: str | None = None
    anycast: bool | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    country_name: str | None = None
    is_eu: bool | None = None
    country_flag: dict[str, str] | None = None
    country_flag_url: str | None = None
    country_currency: dict[str, str] | None = None
    continent: dict[str, str] | None = None
    loc: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    postal: str | None = None
    timezone: str | None = None
    org: str | None = None
    asn: dict[str, Any] | None = None
    company: dict[str, Any] | None = None
    privacy: dict[str, Any] | None = None
    abuse: dict[str, Any] | None = None
    domains: dict[str, Any] | None = None


class DetailsLite(_DetailsBase):
    """Formatted data for a single address from the Lite API."""

    asn: str | None = None
    as_name: str | None = None
    as_domain: str | None = None
    country_code: str | None = None
    country: str | None = None
    continent_code: str | None = None
    continent: str | None = None
    country_name: str | None = None
    is_eu: bool | None = None
    country_flag: dict[str, str] | None = None
    country_flag_url: str | None = None
    country_currency: dict[str, str] | None = None


class GeoDetails(BaseModel):
    """Geolocation block of a Core/Plus response."""

    model_config = ConfigDict(extra="allow")

    city: str | None = None
    region: str | None = None
    region_code: str | None = None
    country: str | None = None
    country_code: str | None = None
    continent: str | None = None
    continent_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    postal_code: str | None = None
    country_name: str | None = None
    is_eu: bool | None = None
    country_flag: dict[str, str] | None = None
    country_flag_url: str | None = None
    country_currency: dict[str, str] | None = None
    continent_info: dict[str, str] | None = None


class ASDetails(BaseModel):
    """Autonomous system block of a Core/Plus response."""

    model_config = ConfigDict(extra="allow")

    asn: str | None = None
    name: str | None = None
    domain: str | None = None
    type: str | None = None


class DetailsCore(_DetailsBase):
    """Formatted data for a single address from the Core API."""

    hostname: str | None = None
    geo: GeoDetails | None = None
    # The API calls this block "as", a Python keyword
    asn: ASDetails | None = Field(default=None, alias="as")
    is_anonymous: bool | None = None
    is_anycast: bool | None = None
    is_hosting: bool | None = None
    is_mobile: bool | None = None
    is_satellite: bool | None = None


class DetailsPlus(DetailsCore):
    """Formatted data for a single address from the Plus API."""

    mobile: dict[str, Any] | None = None
    anonymous: dict[str, Any] | None = None
    abuse: dict[str, Any] | None = None
    company: dict[str, Any] | None = None
    privacy: dict[str, Any] | None = None
    domains: dict[str, Any] | None = None
