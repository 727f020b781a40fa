import ipaddress
import socket

LOCALHOST = "localhost"
WILDCARD_HOSTS = ("", "0.0.0.0", "::")


def get_local_ip() -> str:
    """
    Best guess at this machine's LAN IPv4 address.

    Used only to print an address other devices on the network (phones,
    tablets) can connect to. Falls back to "localhost".
    """
    candidates: list[str] = []

    # Connecting a UDP socket sends nothing; it only selects the outbound interface
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp:
            udp.connect(("10.255.255.255", 1))
            candidates.append(udp.getsockname()[0])
    except OSError:
        pass

    try:
        candidates.extend(
            info[4][0]
            for info in socket.getaddrinfo(
                socket.gethostname(), None, socket.AF_INET
            )
        )
    except OSError:
        pass

    for address in candidates:
        ip = ipaddress.ip_address(address)
        if not (ip.is_loopback or ip.is_unspecified or ip.is_link_local):
            return address

    return LOCALHOST


def public_host(bind_host: str) -> str:
    """Host to advertise for a server bound to `bind_host`."""
    if bind_host in WILDCARD_HOSTS:
        return get_local_ip()
    return bind_host
