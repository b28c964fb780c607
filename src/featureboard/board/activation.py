"""Pointer/touch activation thresholds for starting a drag.

Small jitters must not start a drag. Mouse and pen presses activate after
travelling ``distance`` pixels. Touch presses activate once held for
``touch_delay`` seconds; moving more than ``touch_tolerance`` pixels before
then is read as scroll intent and the press is dropped.

Read-only boards use infinite thresholds so nothing ever activates.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from featureboard.config import BoardConfig

logger = logging.getLogger(__name__)

NEVER = math.inf


@dataclass(frozen=True, slots=True)
class ActivationConstraint:
    distance: float = 8.0
    touch_delay: float = 0.5
    touch_tolerance: float = 5.0

    @classmethod
    def from_config(
        cls, config: BoardConfig, *, read_only: bool = False, mobile: bool = False
    ) -> ActivationConstraint:
        """Build the constraint for one client.

        Mobile clients only drag by touch-hold, so their mouse distance is
        infinite; read-only clients never drag at all.
        """
        if read_only:
            return cls.disabled()
        return cls(
            distance=NEVER if mobile else config.activation_distance,
            touch_delay=config.touch_delay,
            touch_tolerance=config.touch_tolerance,
        )

    @classmethod
    def disabled(cls) -> ActivationConstraint:
        return cls(distance=NEVER, touch_delay=NEVER, touch_tolerance=0.0)


@dataclass(slots=True)
class _Press:
    card_id: str
    x: float
    y: float
    touch: bool
    at: float


class ActivationGate:
    """Tracks one pending press until it activates, is released, or is dropped."""

    __slots__ = ("_clock", "_press", "constraint")

    def __init__(
        self,
        constraint: ActivationConstraint,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.constraint = constraint
        self._clock = clock
        self._press: _Press | None = None

    @property
    def pending(self) -> str | None:
        """Card id of the press awaiting activation, if any."""
        return self._press.card_id if self._press else None

    def press(self, card_id: str, x: float, y: float, pointer_type: str = "mouse") -> None:
        self._press = _Press(card_id, x, y, pointer_type == "touch", self._clock())

    def move(self, x: float, y: float) -> str | None:
        """Feed a pointer position.

        Returns:
            The pressed card id the first time the threshold is crossed,
            otherwise None.
        """
        press = self._press
        if press is None:
            return None

        travelled = math.hypot(x - press.x, y - press.y)
        if press.touch:
            held = self._clock() - press.at
            if held >= self.constraint.touch_delay:
                return self._activate()
            if travelled > self.constraint.touch_tolerance:
                logger.debug("Touch moved %.1fpx before hold; treating as scroll", travelled)
                self._press = None
            return None

        if travelled >= self.constraint.distance:
            return self._activate()
        return None

    def release(self) -> None:
        self._press = None

    def _activate(self) -> str:
        assert self._press is not None
        card_id = self._press.card_id
        self._press = None
        return card_id
