from __future__ import annotations

from typing import Optional, Protocol

import requests
import urllib3

from sql_forwarder.core.models import TransmitResult
from sql_forwarder.utils.logging import get_logger


class Transmitter(Protocol):
    """Protocol for event transmitters."""

    def send(self, payload: str) -> TransmitResult: ...


class SplunkHecTransmitter:
    """
    Posts payloads to a Splunk HTTP Event Collector using requests.

    Each call is a single attempt: retrying a failed payload is the poll
    loop's job on a later tick.
    """

    def __init__(
        self,
        url: str,
        token: str,
        client_id: str = "",
        timeout_s: float = 30,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout_s = timeout_s
        self.verify_ssl = verify_ssl
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Splunk {token}"})
        if client_id:
            self.session.headers["X-Splunk-Request-Channel"] = client_id
        self.log = get_logger("sql_forwarder.http")

        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def send(self, payload: str) -> TransmitResult:
        """Send one payload and report the HTTP status or the transport error."""
        try:
            r = self.session.post(
                self.url,
                data=payload.encode("utf-8"),
                timeout=self.timeout_s,
                verify=self.verify_ssl,
            )
        except requests.RequestException as e:
            self.log.warning("Transmission to %s failed (exception=%s)", self.url, type(e).__name__)
            return TransmitResult(status_code=None, error=f"{type(e).__name__}: {e}")

        if r.status_code != 200:
            self.log.warning("Transmission to %s returned status=%s body=%s", self.url, r.status_code, r.text[:500])
            return TransmitResult(status_code=r.status_code, error=r.text[:500] or None)

        self.log.debug("Transmission to %s ok (bytes=%s)", self.url, len(payload))
        return TransmitResult(status_code=r.status_code)

    def close(self) -> None:
        self.session.close()
