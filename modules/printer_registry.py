"""
Printer discovery for the printer listing endpoints.

Printers are discovered through CUPS (``lpstat -p``) when it is available
and filtered down to DNP models. If nothing is found, the configured printer
name is reported as a "Default" entry so a booth whose printer is driven
only through the hot folder software still answers with something useful.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from logging_config import get_logger


logger = get_logger(__name__)

CACHE_SECONDS = 30.0


@dataclass(frozen=True)
class PrinterInfo:
    name: str
    status: str
    driver_name: str = ""
    is_connected: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.name,
            "name": self.name,
            "status": self.status,
            "driverName": self.driver_name,
            "isConnected": self.is_connected,
        }


def parse_lpstat(output: str) -> List[PrinterInfo]:
    """
    Parse ``lpstat -p`` output.

    Lines look like ``printer DNP_DS_RX1 is idle.  enabled since ...`` or
    ``printer DNP_DS_RX1 disabled since ...``.
    """
    printers = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 3 or parts[0] != "printer":
            continue

        name = parts[1]
        if parts[2] == "is" and len(parts) > 3:
            status = parts[3].rstrip(".")
        else:
            status = parts[2].rstrip(".")

        printers.append(
            PrinterInfo(
                name=name,
                status=status,
                driver_name="CUPS",
                is_connected=status != "disabled",
            )
        )
    return printers


def _lpstat_printers(lpstat_path: str = "lpstat") -> List[PrinterInfo]:
    if shutil.which(lpstat_path) is None:
        return []

    proc = subprocess.run(
        [lpstat_path, "-p"],
        capture_output=True,
        text=True,
        timeout=10,
    )
    if proc.returncode != 0:
        raise RuntimeError(f"lpstat failed (rc={proc.returncode}): {(proc.stderr or '').strip()}")
    return parse_lpstat(proc.stdout)


class PrinterRegistry:
    """
    Cached printer list.

    Args:
        default_printer_name: Reported when discovery finds no DNP printer
        name_filters: Case-insensitive substrings a printer name must contain
        discover: Callable returning every printer the OS knows about
        cache_seconds: How long a discovery result is reused
    """

    def __init__(
        self,
        default_printer_name: str,
        name_filters: Sequence[str] = ("DNP", "RX1"),
        discover: Callable[[], List[PrinterInfo]] = _lpstat_printers,
        cache_seconds: float = CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_printer_name = default_printer_name
        self._filters = [f.lower() for f in name_filters if f]
        self._discover = discover
        self._cache_seconds = cache_seconds
        self._clock = clock

        self._cached: Optional[List[PrinterInfo]] = None
        self._cached_at = 0.0

    def _matches(self, name: str) -> bool:
        if not self._filters:
            return True
        lowered = name.lower()
        return any(f in lowered for f in self._filters)

    def list_printers(self) -> List[PrinterInfo]:
        """
        DNP printers known to the OS, refreshed at most every cache_seconds.

        A failed discovery returns the previous list when there is one.
        When nothing matches, the configured default printer is reported.

        Returns:
            Matching printers (possibly just the default entry)
        """
        if self._cached is not None and self._clock() - self._cached_at < self._cache_seconds:
            return self._cached

        try:
            printers = [p for p in self._discover() if self._matches(p.name)]
        except (OSError, RuntimeError, subprocess.SubprocessError) as e:
            logger.error(f"Printer discovery failed: {e}")
            if self._cached is not None:
                logger.warning("Returning expired printer list after discovery error")
                return self._cached
            printers = []

        if not printers and self.default_printer_name:
            logger.warning(f"No DNP printers discovered, using configured default: {self.default_printer_name}")
            printers = [PrinterInfo(name=self.default_printer_name, status="Default", driver_name="Default")]

        self._cached = printers
        self._cached_at = self._clock()
        logger.info(f"Found {len(printers)} printers")
        return printers

    def get(self, printer_id: str) -> Optional[PrinterInfo]:
        """
        Find a printer by its exact name.

        Args:
            printer_id: Printer name as listed by list_printers()

        Returns:
            PrinterInfo, or None if no such printer
        """
        for printer in self.list_printers():
            if printer.name == printer_id:
                return printer
        return None

    def default_printer(self) -> Optional[PrinterInfo]:
        """First connected printer, as the print endpoint without a printer id uses."""
        for printer in self.list_printers():
            if printer.is_connected:
                return printer
        return None

    def clear_cache(self) -> None:
        """Forget the cached list; the next call rediscovers."""
        self._cached = None
        self._cached_at = 0.0
        logger.info("Printer cache cleared")
