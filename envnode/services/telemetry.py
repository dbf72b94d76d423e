from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..domain.models import Measurements

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 204
DIAGNOSTIC_BYTES = 512


def _escape_tag(v: str) -> str:
    return v.replace("\\", "\\\\").replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


def encode_line_protocol(snapshot: Measurements, node_name: str, version: str) -> str:
    """
    One line per present measurement, in a fixed order:

        temperature,node=N,version=V celsius=21.50
        humidity,node=N,version=V percent=45.00
        illuminance,node=N,version=V lux=123.40
        air_quality,node=N,version=V ppm=450u,ppb=12u

    Absent quantities produce no line, so the payload may be empty.
    """
    tags = f"node={_escape_tag(node_name)},version={_escape_tag(version)}"
    lines: list[str] = []

    if snapshot.temperature is not None:
        lines.append(f"temperature,{tags} celsius={snapshot.temperature:.2f}")
    if snapshot.humidity is not None:
        lines.append(f"humidity,{tags} percent={snapshot.humidity:.2f}")
    if snapshot.illuminance is not None:
        lines.append(f"illuminance,{tags} lux={snapshot.illuminance:.2f}")

    gas = []
    if snapshot.co2eq is not None:
        gas.append(f"ppm={int(snapshot.co2eq)}u")
    if snapshot.tvoc is not None:
        gas.append(f"ppb={int(snapshot.tvoc)}u")
    if gas:
        lines.append(f"air_quality,{tags} {','.join(gas)}")

    return "\n".join(lines)


class InfluxWriter:
    """Pushes line-protocol payloads to an InfluxDB v2 /api/v2/write endpoint."""

    def __init__(
        self,
        base_url: str,
        org: str,
        bucket: str,
        token: str,
        node_name: str,
        version: str,
        auth_scheme: str = "Bearer",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/api/v2/write"
        self._params = {"org": org, "bucket": bucket, "precision": "s"}
        self._auth = f"{auth_scheme} {token}"
        self._node_name = node_name
        self._version = version
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def submit(self, snapshot: Measurements) -> bool:
        payload = encode_line_protocol(snapshot, self._node_name, self._version)
        return self.post(payload)

    def post(self, payload: str) -> bool:
        body = payload.encode("utf-8")
        headers = {
            "Authorization": self._auth,
            "Content-Type": "text/plain; charset=utf-8",
            "Content-Length": str(len(body)),
            "Connection": "close",
        }
        try:
            with self._client.stream("POST", self._url, params=self._params, headers=headers, content=body) as resp:
                diagnostic, drained = self._drain(resp)
        except httpx.HTTPError:
            logger.error("Telemetry submit failed (transport error, %d bytes dropped)", len(body), exc_info=True)
            return False

        if resp.status_code != SUCCESS_STATUS:
            logger.error(
                "Telemetry submit failed: status=%d body=%r (%d bytes total)",
                resp.status_code,
                diagnostic.decode("utf-8", errors="replace"),
                drained,
            )
            return False

        logger.info("Telemetry submitted: %d lines, %d bytes", payload.count("\n") + 1 if payload else 0, len(body))
        return True

    @staticmethod
    def _drain(resp: httpx.Response) -> tuple[bytes, int]:
        """Read the whole body; keep only the first DIAGNOSTIC_BYTES of it."""
        buf = bytearray()
        total = 0
        for chunk in resp.iter_bytes():
            total += len(chunk)
            room = DIAGNOSTIC_BYTES - len(buf)
            if room > 0:
                buf += chunk[:room]
        return bytes(buf), total
