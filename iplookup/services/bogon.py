"""Bogon (reserved / non-routable address) classification.

Best effort only: the table covers the well-known reserved ranges and their
6to4 and Teredo encodings, it is not a firewall-grade filter.
"""

import ipaddress

BOGON_NETWORKS = (
    # IPv4
    "0.0.0.0/8",
    "10.0.0.0/8",
    "100.64.0.0/10",
    "127.0.0.0/8",
    "169.254.0.0/16",
    "172.16.0.0/12",
    "192.0.0.0/24",
    "192.0.2.0/24",
    "192.168.0.0/16",
    "198.18.0.0/15",
    "198.51.100.0/24",
    "203.0.113.0/24",
    "224.0.0.0/4",
    "240.0.0.0/4",
    "255.255.255.255/32",
    # IPv6
    "::/128",
    "::1/128",
    "::ffff:0:0/96",
    "::/96",
    "100::/64",
    "2001:10::/28",
    "2001:db8::/32",
    "fc00::/7",
    "fe80::/10",
    "fec0::/10",
    "ff00::/8",
    # 6to4 encodings of reserved IPv4 ranges
    "2002::/24",
    "2002:a00::/24",
    "2002:7f00::/24",
    "2002:a9fe::/32",
    "2002:ac10::/28",
    "2002:c000::/40",
    "2002:c000:200::/40",
    "2002:c0a8::/32",
    "2002:c612::/31",
    "2002:c633:6400::/40",
    "2002:cb00:7100::/40",
    "2002:e000::/20",
    "2002:f000::/20",
    "2002:ffff:ffff::/48",
    # Teredo encodings of reserved IPv4 ranges
    "2001::/40",
    "2001:0:a00::/40",
    "2001:0:7f00::/40",
    "2001:0:a9fe::/48",
    "2001:0:ac10::/44",
    "2001:0:c000::/56",
    "2001:0:c000:200::/56",
    "2001:0:c0a8::/48",
    "2001:0:c612::/47",
    "2001:0:c633:6400::/56",
    "2001:0:cb00:7100::/56",
    "2001:0:e000::/36",
    "2001:0:f000::/36",
    "2001:0:ffff:ffff::/64",
)

_NETWORKS = tuple(ipaddress.ip_network(cidr) for cidr in BOGON_NETWORKS)


def is_bogon(address: str) -> bool:
    """Check whether `address` falls inside a reserved range.

    Membership is tested on the binary value, so every notation of an
    address gives the same answer. Unparseable input is not a bogon.
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False

    for network in _NETWORKS:
        if network.version == ip.version and ip in network:
            return True
    return False


def bogon_details(address: str) -> dict:
    """Synthetic lookup result for a bogon address."""
    return {"ip": address, "bogon": True}
