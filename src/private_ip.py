"""
Private and reserved address detection.

Measurements must never reveal anything about non-public address space,
so every range that is not globally routable counts as private here.
"""

import ipaddress
from typing import Optional


# Ranges not covered by the ipaddress flags on every supported Python
EXTRA_PRIVATE_NETWORKS = [
    ipaddress.ip_network("100.64.0.0/10"),  # carrier-grade NAT
    ipaddress.ip_network("192.0.0.0/24"),
    ipaddress.ip_network("198.18.0.0/15"),
    ipaddress.ip_network("64:ff9b:1::/48"),
    ipaddress.ip_network("fc00::/7"),
]


def is_ip_private(address: Optional[str]) -> bool:
    """
    Check whether an address lies in a private or reserved range.

    Args:
        address: IPv4 or IPv6 literal (may carry a %zone suffix)

    Returns:
        True for private, loopback, link-local, multicast, reserved and
        unspecified addresses. False for public addresses and for
        anything that is not an address at all.
    """
    if not address:
        return False

    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0].strip())
    except ValueError:
        return False

    # ::ffff:10.0.0.1 and friends
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped

    if (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    ):
        return True

    return any(ip.version == net.version and ip in net for net in EXTRA_PRIVATE_NETWORKS)
