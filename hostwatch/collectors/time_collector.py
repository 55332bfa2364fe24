from __future__ import annotations

import asyncio
import logging
import os
import struct
import time
from pathlib import Path

from hostwatch.collectors.base import BaseCollector
from hostwatch.errors import TransientCollectorError

logger = logging.getLogger(__name__)

NTP_EPOCH_OFFSET = 2208988800  # seconds between 1900-01-01 and 1970-01-01
_NTP_PACKET = struct.Struct("!B B b b 11I")  # 48 bytes
_MODE_CLIENT = 3
_MODE_SERVER = 4
_VERSION = 3


# ── SNTP wire helpers ─────────────────────────────────


def to_ntp(ts: float) -> tuple[int, int]:
    """Unix time -> (seconds, fraction) in NTP 32.32 fixed point."""
    ntp = ts + NTP_EPOCH_OFFSET
    seconds = int(ntp)
    fraction = int((ntp - seconds) * 2**32) & 0xFFFFFFFF
    return seconds & 0xFFFFFFFF, fraction


def from_ntp(seconds: int, fraction: int) -> float:
    return seconds - NTP_EPOCH_OFFSET + fraction / 2**32


def build_request(transmit_time: float) -> bytes:
    tx_sec, tx_frac = to_ntp(transmit_time)
    words = [0] * 11
    words[9], words[10] = tx_sec, tx_frac
    first = (0 << 6) | (_VERSION << 3) | _MODE_CLIENT
    return _NTP_PACKET.pack(first, 0, 0, 0, *words)


def parse_response(data: bytes) -> tuple[float, float]:
    """Return (receive_time, transmit_time) of a server reply as Unix time."""
    if len(data) < _NTP_PACKET.size:
        raise ValueError(f"short NTP reply ({len(data)} bytes)")
    first, stratum, _poll, _precision, *words = _NTP_PACKET.unpack(data[: _NTP_PACKET.size])
    if first & 0x7 != _MODE_SERVER:
        raise ValueError(f"unexpected NTP mode {first & 0x7}")
    if stratum == 0:
        raise ValueError("server sent a kiss-of-death reply")
    rx_sec, rx_frac, tx_sec, tx_frac = words[7], words[8], words[9], words[10]
    if tx_sec == 0:
        raise ValueError("server transmit timestamp is zero")
    return from_ntp(rx_sec, rx_frac), from_ntp(tx_sec, tx_frac)


def clock_offset(t1: float, t2: float, t3: float, t4: float) -> float:
    """Standard NTP offset: positive when the local clock is behind the server."""
    return ((t2 - t1) + (t3 - t4)) / 2


class _SntpProtocol(asyncio.DatagramProtocol):
    def __init__(self, reply: asyncio.Future) -> None:
        self._reply = reply

    def datagram_received(self, data: bytes, addr) -> None:
        if not self._reply.done():
            self._reply.set_result((data, time.time()))

    def error_received(self, exc: Exception) -> None:
        if not self._reply.done():
            self._reply.set_exception(exc)


# ── collectors ────────────────────────────────────────


class TimeDriftProbe(BaseCollector):
    """Measures the local clock's offset from an NTP server with one SNTP query."""

    name = "time_drift_probe"

    def __init__(
        self,
        host: str,
        port: int = 123,
        ntp_timeout: float = 5.0,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.host = host
        self.port = port
        self.ntp_timeout = ntp_timeout

    async def collect(self) -> float:
        loop = asyncio.get_running_loop()
        reply: asyncio.Future = loop.create_future()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SntpProtocol(reply), remote_addr=(self.host, self.port)
            )
        except OSError as exc:
            raise TransientCollectorError(self.name, f"cannot reach {self.host}: {exc}") from exc

        try:
            t1 = time.time()
            transport.sendto(build_request(t1))
            data, t4 = await asyncio.wait_for(reply, timeout=self.ntp_timeout)
        except asyncio.TimeoutError as exc:
            raise TransientCollectorError(
                self.name, f"no reply from {self.host} within {self.ntp_timeout:.1f}s"
            ) from exc
        except OSError as exc:
            raise TransientCollectorError(self.name, f"query to {self.host} failed: {exc}") from exc
        finally:
            transport.close()

        try:
            t2, t3 = parse_response(data)
        except ValueError as exc:
            raise TransientCollectorError(self.name, f"bad reply from {self.host}: {exc}") from exc
        offset = clock_offset(t1, t2, t3, t4)
        logger.debug("Clock offset against %s: %.3fs", self.host, offset)
        return offset


class TimeZoneCollector(BaseCollector):
    """Identifies the host's active time zone.

    Looks at ``$TZ``, then the ``/etc/localtime`` zoneinfo link, then
    ``/etc/timezone``, and finally the C library's zone name.
    """

    name = "time_zone_collector"

    def __init__(
        self,
        localtime_path: str | Path = "/etc/localtime",
        timezone_file: str | Path = "/etc/timezone",
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.localtime_path = Path(localtime_path)
        self.timezone_file = Path(timezone_file)

    async def collect(self) -> str:
        env_tz = os.environ.get("TZ", "").lstrip(":")
        if env_tz:
            return env_tz

        try:
            if self.localtime_path.is_symlink():
                target = os.readlink(self.localtime_path)
                if "zoneinfo/" in target:
                    return target.split("zoneinfo/", 1)[1]
            if self.timezone_file.is_file():
                name = self.timezone_file.read_text().strip()
                if name:
                    return name
        except OSError as exc:
            logger.warning("Could not read zone files: %s", exc)

        name = time.tzname[0]
        if not name:
            raise TransientCollectorError(self.name, "no time zone information available")
        return name
