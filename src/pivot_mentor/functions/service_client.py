"""Base class for clients of upstream HTTP services."""

import logging
import os
import ssl
import sys

import aiohttp
import certifi


class ServiceClient:
    """Shared HTTP session setup for upstream services."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)

        if getattr(sys, "frozen", False) and hasattr(sys, '_MEIPASS'):
            cert_path = os.path.join(sys._MEIPASS, "certifi", "cacert.pem")

        else:
            cert_path = certifi.where()

        self._ssl_context = ssl.create_default_context(cafile=cert_path)
        self._timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=20,
            sock_read=120
        )

    def _create_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session used for one call."""
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(ssl=self._ssl_context),
            timeout=self._timeout
        )
