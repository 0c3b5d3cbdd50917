"""
OSC Transport

Send-only UDP transport built on python-osc. One client is kept per
(host, port) destination. Failures are logged and reported, never
retried.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from pythonosc import udp_client

logger = logging.getLogger(__name__)


class OscTransport:
    """
    Sends OSC messages over UDP.

    Example:
        transport = OscTransport()
        transport.send("/fx1/delay/x", [0.5], "192.168.1.100", 9000)
        transport.close()
    """

    def __init__(self):
        self._clients: Dict[Tuple[str, int], Any] = {}

    def _client(self, host: str, port: int):
        key = (host, port)
        client = self._clients.get(key)
        if client is None:
            client = udp_client.SimpleUDPClient(host, port)
            self._clients[key] = client
            logger.debug(f"OSC client created for {host}:{port}")
        return client

    def send(self, address: str, values: Optional[Sequence[Any]], host: str, port: int) -> bool:
        """
        Send one OSC message.

        Floats go out as 32-bit floats, ints as int32, strings as OSC strings.

        Returns:
            True if the message was handed to the socket
        """
        try:
            self._client(host, port).send_message(address, list(values or []))
            logger.debug(f"OSC sent to {host}:{port}: {address} {list(values or [])}")
            return True
        except Exception as e:
            logger.error(f"OSC send to {host}:{port} failed: {e}")
            # Drop the client so the next send starts with a fresh socket
            self._clients.pop((host, port), None)
            return False

    def close(self):
        """Drop every cached client."""
        self._clients.clear()
        logger.debug("OSC transport closed")
