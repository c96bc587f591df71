"""
Set-overlap primitives for addresses, ports, protocols and domains.

All helpers are null-safe: an absent value is treated as its most permissive
form, and malformed strings never raise, they simply do not match.
"""
import ipaddress
import logging
from typing import Iterable, Optional, Set, Union

logger = logging.getLogger(__name__)

MAX_PORT = 65535

ANY_TARGET = "ANY"
PROTOCOL_ALL = "all"
PROTOCOL_TCP_UDP = "tcp_udp"
PORT_PROTOCOLS = frozenset({"tcp", "udp", PROTOCOL_TCP_UDP})

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_cidr(value: Optional[str]) -> Optional[IPNetwork]:
    """
    Parse a CIDR block or bare IP address.

    A bare address is treated as a host route (/32 for IPv4). Host bits set
    beyond the prefix are masked off rather than rejected.

    Args:
        value: "a.b.c.d/n" or "a.b.c.d"

    Returns:
        Network object, or None when the value cannot be parsed
    """
    if not value:
        return None
    try:
        return ipaddress.ip_network(value.strip(), strict=False)
    except ValueError:
        return None


def cidr_contains(reference: Optional[str], candidate: Optional[str]) -> bool:
    """
    Check whether candidate lies entirely inside reference.

    The candidate is contained when its address masked by the reference prefix
    equals the reference network AND its own prefix is at least as long. A
    larger block is never contained in a smaller one even if they intersect.
    """
    ref_net = parse_cidr(reference)
    cand_net = parse_cidr(candidate)
    if ref_net is None or cand_net is None:
        return False
    if ref_net.version != cand_net.version:
        return False
    if cand_net.prefixlen < ref_net.prefixlen:
        return False
    masked = int(cand_net.network_address) & int(ref_net.netmask)
    return masked == int(ref_net.network_address)


def ip_ranges_overlap(first: Iterable[str], second: Iterable[str]) -> bool:
    """Return True if any entry of first equals or nests with any entry of second."""
    first_list = [v.strip() for v in (first or []) if v and v.strip()]
    second_list = [v.strip() for v in (second or []) if v and v.strip()]
    for a in first_list:
        for b in second_list:
            if a.lower() == b.lower():
                return True
            if cidr_contains(a, b) or cidr_contains(b, a):
                return True
    return False


def domains_overlap(first: Optional[str], second: Optional[str]) -> bool:
    """
    Check whether two domains can match the same host.

    Equal names overlap, and so does a name that ends with "." plus the other
    (label-boundary suffix). "api.example.com" overlaps "example.com" but
    "notexample.com" does not.
    """
    if not first or not second:
        return False
    a = first.strip().lower().rstrip(".")
    b = second.strip().lower().rstrip(".")
    if not a or not b:
        return False
    if a == b:
        return True
    return a.endswith("." + b) or b.endswith("." + a)


def domain_lists_overlap(first: Iterable[str], second: Iterable[str]) -> bool:
    """Return True if any pair of domains from the two lists overlap."""
    return any(domains_overlap(a, b) for a in (first or []) for b in (second or []))


def parse_port_spec(spec: Optional[str]) -> Set[int]:
    """
    Parse a port specification into a set of port numbers.

    Accepts comma separated single ports and "low-high" ranges. Ranges are
    capped at 65535 and malformed parts are skipped.

    Args:
        spec: e.g. "80,443,8000-8080"

    Returns:
        Set of ports, empty when nothing could be parsed
    """
    ports: Set[int] = set()
    if not spec:
        return ports

    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2:
                continue
            try:
                low = int(bounds[0].strip())
                high = int(bounds[1].strip())
            except ValueError:
                continue
            if low < 0 or high < low:
                continue
            ports.update(range(low, min(high, MAX_PORT) + 1))
        else:
            try:
                port = int(part)
            except ValueError:
                continue
            if 0 <= port <= MAX_PORT:
                ports.add(port)
    return ports


def port_specs_overlap(first: Optional[str], second: Optional[str]) -> bool:
    """
    Check whether two port specifications share at least one port.

    An absent or empty spec means "all ports" and overlaps everything.
    """
    if not first or not first.strip() or not second or not second.strip():
        return True
    return bool(parse_port_spec(first) & parse_port_spec(second))


def normalize_protocol(protocol: Optional[str]) -> str:
    """Lower-case a protocol, mapping absent values to "all"."""
    if not protocol or not protocol.strip():
        return PROTOCOL_ALL
    return protocol.strip().lower()


def protocols_overlap(first: Optional[str], second: Optional[str]) -> bool:
    """
    Check whether two protocols can carry the same traffic.

    "all" overlaps anything, and "tcp_udp" overlaps "tcp" and "udp" but never icmp.
    """
    a = normalize_protocol(first)
    b = normalize_protocol(second)
    if a == PROTOCOL_ALL or b == PROTOCOL_ALL:
        return True
    if a == b:
        return True
    if a == PROTOCOL_TCP_UDP and b in ("tcp", "udp"):
        return True
    if b == PROTOCOL_TCP_UDP and a in ("tcp", "udp"):
        return True
    return False


def has_port_semantics(protocol: Optional[str]) -> bool:
    return normalize_protocol(protocol) in PORT_PROTOCOLS


def normalize_target(target: Optional[str]) -> str:
    """Upper-case a matching-target type, mapping absent values to ANY."""
    if not target or not target.strip():
        return ANY_TARGET
    return target.strip().upper()


def network_ids_overlap(first: Iterable[str], second: Iterable[str]) -> bool:
    return bool(set(first or []) & set(second or []))
