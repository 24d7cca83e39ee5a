"""Code lens caching, resolution and rendering for language-server clients."""

from .controller import CodeLensController
from .errors import CodeLensError, InvalidOptionsError, ServerGoneError
from .events import (
    DocumentLinesChanged,
    DocumentUnloaded,
    EventBus,
    LensExecuted,
    LensesSaved,
    RefreshFailed,
    RefreshFinished,
    RefreshStarted,
    ServerDetached,
)
from .models import Chunk, CodeLens, Command, Namespace, Position, Range
from .settings import CodeLensSettings, DisplayOptions
from .state import LensState

__version__ = "0.1.0"

__all__ = [
    "CodeLensController",
    "CodeLensError",
    "InvalidOptionsError",
    "ServerGoneError",
    "EventBus",
    "DocumentLinesChanged",
    "DocumentUnloaded",
    "ServerDetached",
    "LensesSaved",
    "RefreshStarted",
    "RefreshFinished",
    "RefreshFailed",
    "LensExecuted",
    "Chunk",
    "CodeLens",
    "Command",
    "Namespace",
    "Position",
    "Range",
    "CodeLensSettings",
    "DisplayOptions",
    "LensState",
]
