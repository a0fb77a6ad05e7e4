# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StepError(Exception):
    """
    Structured step error with enough context for:
      - clean CLI output
      - callers that branch on `kind`
      - debugging without full tracebacks
    """
    kind: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class StepValidationError(StepError, ValueError):
    """Raised when a step is constructed without its required content."""


class StepTypeMismatchError(StepError, TypeError):
    """Raised when an envelope's type tag is not the command line step type."""


class StepDecodeError(StepError, ValueError):
    """Raised when an envelope's properties cannot be mapped onto a step."""
