"""Display output through wl-gammarelay's D-Bus interface (Wayland).

``busctl`` is spawned from a single writer thread so callers on the event
loop never wait for it. Only the newest value is kept: values submitted while
a write is in flight replace each other, and the writer catches up with the
last one.
"""
from __future__ import annotations

import logging
import subprocess
import threading
from typing import Optional

from ..domain.blackbody import MAX_KELVIN, MIN_KELVIN
from ..domain.models import NEUTRAL, ColorValue

logger = logging.getLogger(__name__)

SERVICE = "rs.wl-gammarelay"
OBJECT_PATH = "/"
INTERFACE = "rs.wl.gammarelay"


class GammaRelayDisplay:
    sink_id = "wl_gammarelay"

    def __init__(self, busctl: str = "busctl", timeout: float = 2.0) -> None:
        self._busctl = busctl
        self._timeout = timeout

        self._cond = threading.Condition()
        self._pending: Optional[ColorValue] = None
        self._busy = False
        self._last_ok = True
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    def apply(self, temperature: int, brightness: float) -> bool:
        """Queue a value for the writer.

        Returns the outcome of the most recent completed write, so a refused
        value is reported on the following call.
        """
        kelvin = max(MIN_KELVIN, min(MAX_KELVIN, int(temperature)))
        bri = max(0.0, min(1.0, float(brightness)))
        return self._submit(ColorValue(kelvin, bri))

    def reset(self) -> None:
        self._submit(NEUTRAL)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued value has been written. False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Write whatever is still queued, then stop the writer."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("gammarelay writer did not stop within %.1fs", timeout)

    def _submit(self, value: ColorValue) -> bool:
        with self._cond:
            if self._closed:
                logger.warning("gammarelay output closed; dropping %dK@%.2f", value.temperature, value.brightness)
                return False
            self._pending = value
            if self._thread is None:
                self._thread = threading.Thread(target=self._writer_loop, name="gammarelay_writer", daemon=True)
                self._thread.start()
            self._cond.notify_all()
            return self._last_ok

    def _writer_loop(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending is not None or self._closed)
                if self._pending is None:
                    return
                value, self._pending = self._pending, None
                self._busy = True
            ok = self._write(value)
            with self._cond:
                self._last_ok = ok
                self._busy = False
                self._cond.notify_all()

    def _write(self, value: ColorValue) -> bool:
        ok = self._set_property("Temperature", "q", str(value.temperature))
        # Brightness is still attempted so a partial failure does not leave it stale
        ok = self._set_property("Brightness", "d", f"{value.brightness:.4f}") and ok
        return ok

    def _set_property(self, name: str, signature: str, value: str) -> bool:
        cmd = [
            self._busctl, "--user", "set-property",
            SERVICE, OBJECT_PATH, INTERFACE, name, signature, value,
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, timeout=self._timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("busctl set-property %s=%s failed: %s", name, value, e)
            return False
        return True
