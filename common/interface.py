"""
Interface definitions for control laws and time sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Tuple

from common.types import ControlOutput, DebugRecord, DesiredState, ImuState, OdomState

Clock = Callable[[], float]


class ControlLaw(ABC):
    """Abstract base for position-to-attitude control laws."""

    @abstractmethod
    def calculate_control(
        self, des: DesiredState, odom: OdomState, imu: ImuState
    ) -> Tuple[ControlOutput, DebugRecord]:
        """Compute thrust and command-frame attitude for one tick."""
