from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Publisher(ABC):
    @abstractmethod
    def publish(self, msg: Any) -> None:
        """Emit one message on the bound topic without waiting for delivery."""
