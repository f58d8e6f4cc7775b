"""Results of one login attempt.

Exactly one of these is produced per attempt. Failures are returned, not
raised, so the pipeline can report them with their ``kind`` intact.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from ..models import SessionArtifacts

ChallengeKind = Literal["captcha", "twoFactor"]


@dataclass(frozen=True, slots=True)
class Success:
    artifacts: SessionArtifacts
    already_authenticated: bool = False

    ok = True
    kind = "success"

    @property
    def message(self) -> str:
        return f"authenticated with {len(self.artifacts.cookies)} cookies"


@dataclass(frozen=True, slots=True)
class InvalidCredentials:
    message: str = "the site rejected the identifier or secret"

    ok = False
    kind = "invalid-credentials"


@dataclass(frozen=True, slots=True)
class ChallengeRequired:
    """Anti-automation or two-factor step that needs a human.

    Callers should wait before retrying; an immediate retry tends to raise the
    site's bot suspicion further.
    """

    challenge: ChallengeKind
    marker: str = ""

    ok = False
    kind = "challenge-required"

    @property
    def message(self) -> str:
        if self.challenge == "twoFactor":
            return "two-factor verification required"
        return "anti-bot challenge required"


@dataclass(frozen=True, slots=True)
class UnknownFailure:
    diagnostic: str
    retryable: bool = False

    ok = False
    kind = "unknown"

    @property
    def message(self) -> str:
        return self.diagnostic


LoginOutcome = Union[Success, InvalidCredentials, ChallengeRequired, UnknownFailure]

__all__ = [
    "ChallengeKind",
    "ChallengeRequired",
    "InvalidCredentials",
    "LoginOutcome",
    "Success",
    "UnknownFailure",
]
