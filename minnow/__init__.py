"""Networking toolkit: Ethernet, ARP, IPv4 and TCP wire formats, checksums, sockets and an event loop."""

__version__ = "0.1.0"