# ============================================================================
# core/cache.py - Rendered View Cache
# ============================================================================

import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


class ViewCache:
    """Rendered route payloads keyed by path.

    Entries are computed on first access and kept until the path is
    revalidated; the next access after that recomputes them. A render that
    was in flight when its path got revalidated is returned to its caller
    but not stored.
    """

    def __init__(self):
        self._views: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}

    def __contains__(self, path: str) -> bool:
        return _normalize(path) in self._views

    async def get_or_render(self, path: str, render: Callable[[], Awaitable[Any]]) -> Any:
        key = _normalize(path)
        if key in self._views:
            return self._views[key]

        generation = self._generations.get(key, 0)
        view = await render()
        if self._generations.get(key, 0) == generation:
            self._views[key] = view
        return view

    def revalidate_path(self, path: str) -> None:
        key = _normalize(path)
        self._generations[key] = self._generations.get(key, 0) + 1
        if self._views.pop(key, None) is not None:
            logger.info(f"Revalidated view {key}")

    def clear(self) -> None:
        self._views.clear()


view_cache = ViewCache()
