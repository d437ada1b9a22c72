from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from newsengine.models.user import User


def unix_now() -> int:
    return int(time.time())


@dataclass
class RequestContext:
    """Per-request state handed explicitly to every engine call."""

    user: Optional["User"] = None
    now: int = field(default_factory=unix_now)

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user else None
