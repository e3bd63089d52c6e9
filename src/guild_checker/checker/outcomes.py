"""Per-task outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field


def is_absent(payload: Any) -> bool:
    """True when the payload is the literal JSON `false` ("not in the dataset").

    Only `False` itself counts; `0`, `null` and empty containers are notable.
    """

    return payload is False


class Found(BaseModel):
    """A lookup that returned a parseable response."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    display_name: str
    payload: Any = Field(default=None, description="Response body, passed through verbatim")

    @property
    def absent(self) -> bool:
        return is_absent(self.payload)


@dataclass(frozen=True, slots=True)
class Failed:
    """A lookup that produced no usable response."""

    identifier: str
    reason: str = ""


Outcome: TypeAlias = Found | Failed
