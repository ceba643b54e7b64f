from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

from hawker.core.config import Settings

INTERNAL_TOKEN_HEADER = "X-Internal-Token"

_Network = ipaddress.IPv4Network | ipaddress.IPv6Network


@lru_cache(maxsize=32)
def _networks(allowlist: str) -> tuple[_Network, ...]:
    networks: list[_Network] = []
    for entry in (part.strip() for part in allowlist.split(",")):
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def _normalize_ip(value: str | None) -> str | None:
    if not value or not value.strip():
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def address_in_allowlist(address: str | None, allowlist: str) -> bool:
    if address is None:
        return False
    parsed = ipaddress.ip_address(address)
    return any(parsed in network for network in _networks(allowlist))


def client_address(request: Request, *, trusted_proxies: str = "") -> str | None:
    """Peer address, or the first X-Forwarded-For hop when the peer is a trusted proxy."""
    peer = _normalize_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and address_in_allowlist(peer, trusted_proxies):
        return _normalize_ip(forwarded_for.split(",", maxsplit=1)[0])
    return peer


def internal_access_denial(request: Request, *, settings: Settings) -> str | None:
    """Reason an operator request is refused, or None when it may proceed."""
    address = client_address(request, trusted_proxies=settings.internal_api_trusted_proxies)
    if not address_in_allowlist(address, settings.internal_api_allowlist):
        return "ip_not_allowed"

    expected = settings.internal_api_token
    received = request.headers.get(INTERNAL_TOKEN_HEADER)
    if not expected or not received or not secrets.compare_digest(expected, received):
        return "invalid_credentials"
    return None
