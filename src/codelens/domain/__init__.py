"""Domain layer of the lens core.

Each manager receives its collaborators through constructor injection and has
no dependency on a concrete editor, transport or UI toolkit.

Domain Managers:
    - NamespaceRegistry: per-server display namespaces
    - LensStore: lens cache and per-document subscriptions
    - Renderer: chunk building and line rendering
    - ResolveCoordinator: per-line resolve fan-out/fan-in
    - RefreshCoordinator: deduplicated list → save → display → resolve
    - Executor: run the lens at the cursor
"""

from __future__ import annotations

from .executor import Executor, LensCandidate
from .lens_store import LensStore
from .namespaces import NamespaceRegistry
from .refresh import RefreshCoordinator
from .renderer import Renderer, group_by_line
from .resolver import LineCountdown, ResolveCoordinator, ResolvePass

__all__: list[str] = [
    "Executor",
    "LensCandidate",
    "LensStore",
    "NamespaceRegistry",
    "RefreshCoordinator",
    "Renderer",
    "group_by_line",
    "LineCountdown",
    "ResolveCoordinator",
    "ResolvePass",
]
