"""Client details captured with public submissions."""

import ipaddress
from typing import Optional

from starlette.requests import Request

# Proxies whose X-Forwarded-For entries are believed
TRUSTED_PROXIES = [
    ipaddress.ip_network("127.0.0.1/32"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
]

USER_AGENT_MAX = 512


def is_trusted_proxy(ip: str) -> bool:
    """Check if IP is a trusted proxy."""
    try:
        addr = ipaddress.ip_address(ip)
        return any(addr in net for net in TRUSTED_PROXIES)
    except ValueError:
        return False


def _parse_ip(value: str) -> Optional[str]:
    """Normalized address, None for anything that is not an IP."""
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def get_client_ip(request: Request) -> Optional[str]:
    """Client address, read through trusted proxies only.

    X-Forwarded-For is walked from the right; the first address that is not
    a trusted proxy is the client. Spoofed entries prepended by the client
    are never reached, and entries that are not IP addresses are ignored.
    """
    client_host = request.client.host if request.client else None

    if client_host and is_trusted_proxy(client_host):
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ips = [ip for ip in map(_parse_ip, forwarded.split(",")) if ip]
            for ip in reversed(ips):
                if not is_trusted_proxy(ip):
                    return ip
            if ips:
                return ips[0]

    return client_host


def get_user_agent(request: Request) -> Optional[str]:
    user_agent = request.headers.get("User-Agent")
    return user_agent[:USER_AGENT_MAX] if user_agent else None
