"""SSRF screening for user-submitted URLs.

Only the literal form of the host is inspected. Host names are never resolved,
so a name that resolves to a private address (DNS rebinding) passes.
"""

import ipaddress
import re
import socket
from urllib.parse import urlsplit

from recipemarks.domain.models import ALLOWED, RejectReason, ValidationVerdict
from recipemarks.domain.policy import ExtractionPolicy


type IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


# Shorthand IPv4 forms the system resolver accepts: 2130706433, 0x7f.1, 127.1
NUMERIC_HOST = re.compile(r"[0-9a-fx.]+", re.IGNORECASE)
HAS_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)


def ip_literal(host: str) -> IPAddress | None:
    """The address a literal host denotes, or None for a host name."""
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        if not NUMERIC_HOST.fullmatch(host):
            return None
        try:
            ip = ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def validate(url: str, policy: ExtractionPolicy) -> ValidationVerdict:
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
        parts.port  # raises on a non-numeric or out of range port
    except (ValueError, AttributeError):
        return ValidationVerdict.reject(RejectReason.malformed)

    if not parts.scheme:
        return ValidationVerdict.reject(RejectReason.malformed)
    if parts.scheme not in policy.allowed_schemes:
        return ValidationVerdict.reject(RejectReason.scheme)
    if not host:
        return ValidationVerdict.reject(RejectReason.malformed)

    host = host.rstrip(".")
    if host in policy.loopback_hosts:
        return ValidationVerdict.reject(RejectReason.loopback)

    ip = ip_literal(host)
    if ip is None:
        return ALLOWED
    if any(ip in net for net in policy.loopback_networks):
        return ValidationVerdict.reject(RejectReason.loopback)
    if any(ip in net for net in policy.private_networks):
        return ValidationVerdict.reject(RejectReason.private_range)
    return ALLOWED


def is_allowed(url: str, policy: ExtractionPolicy) -> bool:
    return validate(url, policy).allowed


def hostname(url: str) -> str:
    return urlsplit(url.strip()).hostname or ""


def resolve_image_url(value: str, page_url: str) -> str:
    """Make an image reference absolute against the page it was found on.

    Bare relative paths are rooted at the host, not at the page's directory.
    """
    page = urlsplit(page_url.strip())
    origin = f"{page.scheme}://{page.netloc.rpartition('@')[2]}"

    if value.startswith("//"):
        return f"{page.scheme}:{value}"
    if value.startswith("/"):
        return f"{origin}{value}"
    if HAS_SCHEME.match(value):
        return value
    return f"{origin}/{value}"
