# betiq/access_codes.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from betiq.config import Settings, normalize_code
from betiq.timeutil import Clock, utcnow


@dataclass(frozen=True)
class NoMatch:
    kind: str = "NO_MATCH"


@dataclass(frozen=True)
class GrantPermanent:
    kind: str = "GRANT_PERMANENT"


@dataclass(frozen=True)
class GrantTimeBoxed:
    activated_at: datetime
    kind: str = "GRANT_TIME_BOXED"


ValidationOutcome = Union[NoMatch, GrantPermanent, GrantTimeBoxed]


def is_grant(outcome: ValidationOutcome) -> bool:
    return isinstance(outcome, (GrantPermanent, GrantTimeBoxed))


class CodeValidator:
    """
    Decides what a submitted code is worth. Never touches storage.

    The settings page calls this on every keystroke, so an unknown code is a
    normal NoMatch outcome rather than an error.
    """

    def __init__(self, admin_code: str, codes: frozenset[str], clock: Optional[Clock] = None):
        self.admin_code = normalize_code(admin_code)
        self.codes = frozenset(normalize_code(c) for c in codes)
        self._clock = clock or utcnow

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None) -> "CodeValidator":
        return cls(settings.vip_admin_code, settings.vip_codes, clock=clock)

    def validate(self, raw_input: Optional[str]) -> ValidationOutcome:
        code = normalize_code(raw_input)
        if not code:
            return NoMatch()
        if self.admin_code and code == self.admin_code:
            return GrantPermanent()
        if code in self.codes:
            return GrantTimeBoxed(activated_at=self._clock())
        return NoMatch()
