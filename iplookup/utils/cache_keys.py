"""Cache key normalization for address lookups.

A raw key looks like ``<address>[/<field>][_<suffix>]``, e.g. ``8.8.8.8``,
``8.8.8.8/hostname`` or ``2001:DB8::1_v1``. The address portion is rewritten
to its canonical text so that every notation of the same address maps to one
cache entry. Anything that does not parse as an address is kept verbatim.
"""

import ipaddress

SUFFIX_SEPARATOR = "_"
FIELD_SEPARATOR = "/"

# Characters the cache backend does not accept in keys
RESERVED_CHARACTERS = "{}()/\\@:"
PLACEHOLDER = "^"

_RESERVED_TABLE = str.maketrans({c: PLACEHOLDER for c in RESERVED_CHARACTERS})


def canonical_address(address: str) -> str:
    """Return the canonical text of an IP address, or `address` unchanged.

    IPv6 addresses come back lowercase with the longest zero run compressed;
    IPv4 addresses come back in dotted-decimal form.
    """
    try:
        return str(ipaddress.ip_address(address))
    except ValueError:
        return address


def split_key(key: str) -> tuple[str, str | None, str | None]:
    """Split a raw key into (address, field, suffix)."""
    head, sep, suffix = key.partition(SUFFIX_SEPARATOR)
    address, field_sep, field = head.partition(FIELD_SEPARATOR)
    return address, (field if field_sep else None), (suffix if sep else None)


def normalize_key(key: str) -> str:
    """Canonicalize the address portion of a raw key.

    Field and suffix portions are preserved as-is, so two keys that differ
    only in their suffix stay distinct.
    """
    address, field, suffix = split_key(key)
    normalized = canonical_address(address)
    if field is not None:
        normalized = f"{normalized}{FIELD_SEPARATOR}{field}"
    if suffix is not None:
        normalized = f"{normalized}{SUFFIX_SEPARATOR}{suffix}"
    return normalized


def sanitize_key(key: str) -> str:
    """Normalize `key` and replace characters reserved by the cache backend.

    The replacement runs after normalization so address parsing still sees
    the original ``:`` and ``/`` separators.
    """
    return normalize_key(key).translate(_RESERVED_TABLE)


def address_of(key: str) -> str:
    """Return the address portion of a raw key, as the caller wrote it."""
    return split_key(key)[0]
