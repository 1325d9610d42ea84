from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT.

    ``subject`` is the raw ``sub`` claim. It is turned into a UserRef by the
    identity resolver before any messaging operation uses it.
    """

    subject: str
    roles: list[str] = field(default_factory=list)
