"""Collector for non-fatal findings made during extraction."""

import logging

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Diagnostic(BaseModel):
    """One documentation inconsistency that did not abort the run."""

    model_config = ConfigDict(frozen=True)

    code: str  # degraded-enum / assumed-array / unresolved-reference / ...
    message: str
    context: str = ""


class Diagnostics:
    """Ordered list of diagnostics, passed explicitly through extraction calls."""

    def __init__(self):
        self.items: list[Diagnostic] = []

    def warn(self, code: str, message: str, context: str = "") -> None:
        diagnostic = Diagnostic(code=code, message=message, context=context)
        self.items.append(diagnostic)
        if context:
            logger.warning("%s: %s (%s)", code, message, context)
        else:
            logger.warning("%s: %s", code, message)

    def codes(self) -> list[str]:
        return [d.code for d in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
