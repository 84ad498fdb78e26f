"""Priority expressions accepted by snice: +N, -N or an absolute N."""

from __future__ import annotations

import enum
from dataclasses import dataclass

_U32_MAX = 0xFFFF_FFFF


class PriorityParseError(ValueError):
    """Raised when a priority expression cannot be read."""

    def __init__(self, value: str) -> None:
        super().__init__(f"failed to parse argument: '{value}'")
        self.value = value


class PriorityKind(enum.Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    TO = "to"


def _parse_unsigned(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise ValueError(text)
    number = int(digits)
    if number > _U32_MAX:
        raise ValueError(text)
    return number


@dataclass(frozen=True)
class Priority:
    """A change to a process's nice value."""

    kind: PriorityKind
    value: int

    @classmethod
    def parse(cls, value: str) -> Priority:
        """Read ``-N`` as a decrease, ``+N`` as an increase and ``N`` as a target."""
        if value.startswith("-"):
            kind, text = PriorityKind.DECREASE, value[1:]
        elif value.startswith("+"):
            kind, text = PriorityKind.INCREASE, value[1:]
        else:
            kind, text = PriorityKind.TO, value
        try:
            return cls(kind, _parse_unsigned(text))
        except ValueError:
            raise PriorityParseError(value) from None

    @classmethod
    def default(cls) -> Priority:
        """The priority used when none is given: +4."""
        return cls(PriorityKind.INCREASE, 4)

    def apply(self, current: int) -> int:
        """The new nice value for a process whose value is ``current``."""
        if self.kind is PriorityKind.INCREASE:
            return current + self.value
        if self.kind is PriorityKind.DECREASE:
            return current - self.value
        return self.value

    def __str__(self) -> str:
        if self.kind is PriorityKind.INCREASE:
            return f"+{self.value}"
        if self.kind is PriorityKind.DECREASE:
            return f"-{self.value}"
        return str(self.value)