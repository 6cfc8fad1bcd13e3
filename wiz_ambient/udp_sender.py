"""
udp_sender.py
Sends setPilot datagrams to a WiZ light. Fire-and-forget: no ack, no retry,
failures come back as a False return and a status message.
"""

import socket
import time

from wiz_ambient.packet_builder import PacketBuilder

IPTOS_LOWDELAY = 0x10


def resolve_host(host):
    """First IPv4 address for `host`. Raises OSError when it does not resolve."""
    infos = socket.getaddrinfo(host, None, socket.AF_INET, socket.SOCK_DGRAM)
    if not infos:
        raise OSError(f"no IPv4 address for {host!r}")
    return infos[0][4][0]


def open_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if hasattr(socket, 'IP_TOS'):
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TOS, IPTOS_LOWDELAY)
        except OSError:
            pass  # not permitted on every platform
    sock.bind(('', 0))
    sock.setblocking(False)
    return sock


class UDPSender:
    def __init__(self, config=None, sock=None, resolver=resolve_host, on_status=None):
        self.config = config
        self.sock = sock if sock is not None else open_socket()
        self.packet_builder = PacketBuilder(config)
        self.resolver = resolver
        self.on_status = on_status
        # (host, address), swapped in one assignment so readers never see a mixed pair
        self._cache = (None, None)
        # Host string whose lookup failed; not retried until the host changes.
        self.failed_host = None
        self.last_error = ""
        self._last_debug_print = 0.0

    @property
    def cached_host(self):
        return self._cache[0]

    @property
    def cached_address(self):
        return self._cache[1]

    def resolve(self, host):
        """Address for `host`, resolving only when the host string changes. None if it does not resolve."""
        cached_host, cached_address = self._cache
        if host == cached_host and cached_address is not None:
            return cached_address
        if host == self.failed_host:
            return None
        try:
            address = self.resolver(host)
        except OSError as e:
            # Previous good address stays cached for when the host is changed back.
            self.failed_host = host
            self._error(f"Cannot resolve {host}: {e}")
            return None
        self._cache = (host, address)
        self.failed_host = None
        return address

    def send(self, target, color):
        """
        Send one colour to `target` (DeviceTarget).
        Returns:
            bool: True if the datagram was handed to the OS.
        """
        address = self.resolve(target.host)
        if address is None:
            return False
        packet = self.packet_builder.build(color, target.brightness)

        # Optional debug print (rate-limited)
        if getattr(self.config, 'debug_udp_packets', False):
            now = time.time()
            if now - self._last_debug_print > 1.0:
                print(f"[UDP] {address}:{target.port} <- {packet.decode('utf-8')}")
                self._last_debug_print = now

        try:
            self.sock.sendto(packet, (address, int(target.port)))
        except OSError as e:
            self._error(f"UDP send failed: {e}")
            return False
        self.last_error = ""
        return True

    def close(self):
        self.sock.close()

    def _error(self, msg):
        self.last_error = msg
        print(f"[UDP] {msg}")
        if self.on_status:
            self.on_status(msg)
