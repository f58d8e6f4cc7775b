"""Login flow: navigation, credential submission and artifact extraction."""

from .artifacts import ArtifactExtractor
from .markers import IntermediateScreen, LoginProfile, MarkerSet, PageMarker, default_profile
from .navigator import LoginFlowNavigator, NavigationReport, NavigatorState
from .outcomes import ChallengeRequired, InvalidCredentials, LoginOutcome, Success, UnknownFailure
from .session import acquire_session, login
from .submitter import CredentialSubmitter

__all__ = [
    "ArtifactExtractor",
    "ChallengeRequired",
    "CredentialSubmitter",
    "IntermediateScreen",
    "InvalidCredentials",
    "LoginFlowNavigator",
    "LoginOutcome",
    "LoginProfile",
    "MarkerSet",
    "NavigationReport",
    "NavigatorState",
    "PageMarker",
    "Success",
    "UnknownFailure",
    "acquire_session",
    "default_profile",
    "login",
]
