from __future__ import annotations
import logging
from typing import Optional

from ..domain.blackbody import kelvin_to_rgb
from ..domain.models import NEUTRAL, ColorValue

logger = logging.getLogger(__name__)


class SimulatedDisplay:
    sink_id = "display_sim"

    def __init__(self) -> None:
        self.current: ColorValue = NEUTRAL
        self.rgb: tuple[float, float, float] = kelvin_to_rgb(NEUTRAL.temperature)
        self.history: list[Optional[ColorValue]] = []  # None marks a reset
        self.fail = False

    def apply(self, temperature: int, brightness: float) -> bool:
        if self.fail:
            logger.warning("DISPLAY refused %dK@%.2f (simulated failure)", temperature, brightness)
            return False
        self.current = ColorValue(int(temperature), float(brightness))
        r, g, b = kelvin_to_rgb(temperature)
        self.rgb = (r * brightness, g * brightness, b * brightness)
        self.history.append(self.current)
        logger.debug("DISPLAY %dK@%.2f rgb=(%.3f, %.3f, %.3f)", temperature, brightness, *self.rgb)
        return True

    def reset(self) -> None:
        self.current = NEUTRAL
        self.rgb = kelvin_to_rgb(NEUTRAL.temperature)
        self.history.append(None)
        logger.info("DISPLAY reset to baseline")

    def close(self) -> None:
        pass
