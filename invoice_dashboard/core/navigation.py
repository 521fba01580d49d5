# core/navigation.py - Redirects
# ============================================================================

from fastapi import status
from fastapi.responses import RedirectResponse


def redirect(path: str) -> RedirectResponse:
    # 303 so the browser follows a form POST with a GET
    return RedirectResponse(url=path, status_code=status.HTTP_303_SEE_OTHER)


def is_safe_redirect(path: str) -> bool:
    """Only same-site absolute paths are allowed as redirect targets."""
    return path.startswith("/") and not path.startswith("//") and "\\" not in path
