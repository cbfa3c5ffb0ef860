from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ActionResult(Generic[T]):
    """Envelope every action handler returns: ``{success, message, data}``."""

    success: bool
    message: str = ""
    data: Optional[T] = None

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> "ActionResult":
        return cls(True, message, data)

    @classmethod
    def fail(cls, message: str, data: Any = None) -> "ActionResult":
        return cls(False, message, data)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out
