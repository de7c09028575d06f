# src/gitcache/util/netinfo.py
from __future__ import annotations

import ipaddress
import socket
from typing import List

import psutil


def advertised_urls(port: int) -> List[str]:
    """http://<ip>:<port> for every non-loopback IPv4 address of this host."""
    urls: List[str] = []
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if ipaddress.ip_address(addr.address).is_loopback:
                continue
            url = f"http://{addr.address}:{port}"
            if url not in urls:
                urls.append(url)
    return urls
