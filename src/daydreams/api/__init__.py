"""Public API surface for HTTP serving and Python-first interfaces."""

from daydreams.api.app import create_app
from daydreams.api.contracts import (
    DailyPromptResponse,
    PartnershipResponse,
    StoryResponse,
)
from daydreams.api.python_interface import AuthSession, DaydreamApiClient

__all__ = [
    "AuthSession",
    "DailyPromptResponse",
    "DaydreamApiClient",
    "PartnershipResponse",
    "StoryResponse",
    "create_app",
]
