"""Socket addresses: numeric IPv4 construction, name resolution and conversions."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any

from minnow.errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _check_port(port: int) -> int:
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {port}")
    return port


def _getaddrinfo(node: str, service: str, family: int, flags: int) -> tuple[int, Any]:
    try:
        results = socket.getaddrinfo(node, service, family, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    resolved_family, _type, _proto, _canonname, sockaddr = results[0]
    return resolved_family, sockaddr


class Address:
    """An immutable socket address (IPv4, IPv6 or another family)."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a numeric IPv4 address such as "18.243.0.1" and a port; no lookup."""
        _check_port(port)
        self._family, self._sockaddr = _getaddrinfo(
            ip, str(port), socket.AF_INET, socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )

    @classmethod
    def resolve(cls, hostname: str, service: str | int) -> Address:
        """Resolve a host name and a service name or number to an IPv4 address."""
        family, sockaddr = _getaddrinfo(hostname, str(service), socket.AF_INET, socket.AI_ALL)
        return cls.from_sockaddr(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> Address:
        """Wrap a raw socket address as returned by the socket module."""
        address = cls.__new__(cls)
        address._family = family
        address._sockaddr = sockaddr
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build from a 32-bit IPv4 address in host order, with port 0."""
        dotted = str(ipaddress.IPv4Address(ip_address & 0xFFFFFFFF))
        return cls.from_sockaddr(socket.AF_INET, (dotted, 0))

    @property
    def family(self) -> int:
        return self._family

    @property
    def sockaddr(self) -> Any:
        return self._sockaddr

    def ip_port(self) -> tuple[str, int]:
        """The numeric IP address string and the port."""
        if self._family not in _INTERNET_FAMILIES:
            raise RuntimeError("Address::ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(
                self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    def to_string(self) -> str:
        """Human-readable form such as "8.8.8.8:53"."""
        if self._family in _INTERNET_FAMILIES:
            host, port = self.ip_port()
            return f"{host}:{port}"
        return "(non-Internet address)"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Address.from_sockaddr({self._family!r}, {self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))