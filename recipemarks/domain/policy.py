from dataclasses import dataclass, field
import ipaddress


type Network = ipaddress.IPv4Network | ipaddress.IPv6Network


DEFAULT_USER_AGENT = "RecipemarksBot/1.0 (+link preview)"


def networks(*cidrs: str) -> tuple[Network, ...]:
    return tuple(ipaddress.ip_network(c) for c in cidrs)


@dataclass(frozen=True)
class ExtractionPolicy:
    """Read-only limits shared by every extraction call."""

    time_limit: float = 10.0
    byte_limit: int = 1024 * 1024
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    allowed_schemes: frozenset[str] = frozenset({"http", "https"})
    loopback_hosts: frozenset[str] = frozenset(
        {"localhost", "127.0.0.1", "::1", "0.0.0.0"}
    )
    loopback_networks: tuple[Network, ...] = field(
        default_factory=lambda: networks(
            # "This host": connecting to it reaches the local machine.
            "0.0.0.0/8",
            "127.0.0.0/8",
            "::/128",
            "::1/128",
        )
    )
    private_networks: tuple[Network, ...] = field(
        default_factory=lambda: networks(
            "10.0.0.0/8",
            "172.16.0.0/12",
            "192.168.0.0/16",
            "169.254.0.0/16",
            "fc00::/7",
            "fe80::/10",
        )
    )
