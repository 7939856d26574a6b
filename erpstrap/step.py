from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Iterable, Optional

if TYPE_CHECKING:
    from .config import Settings
    from .environment import EnvironmentLabel
    from .host import Host


@dataclass(frozen=True)
class StepContext:
    settings: "Settings"
    host: "Host"
    label: "EnvironmentLabel"


class Step(ABC):
    """A named, idempotent unit of provisioning work.

    ``check`` must be a side-effect-free query answering "is this already
    done?". It raises when the answer cannot be determined. ``apply``
    performs the work and raises on failure. The sequencer never calls
    ``apply`` when ``check`` returns True.
    """

    description: str = ""

    def __init__(self, name: str, skip_in: Optional[Iterable["EnvironmentLabel"]] = None) -> None:
        self.name = name
        self.skip_in: FrozenSet["EnvironmentLabel"] = frozenset(skip_in or ())

    def applies_to(self, label: "EnvironmentLabel") -> bool:
        return label not in self.skip_in

    def describe(self) -> str:
        return self.description or self.name

    @abstractmethod
    def check(self, ctx: StepContext) -> bool:
        """Return True when the desired state already holds."""

    @abstractmethod
    def apply(self, ctx: StepContext) -> None:
        """Bring the host into the desired state."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
