"""
Exception types raised by the essay archiver.
"""

from typing import Optional


class EssayVaultError(Exception):
    """Base class for all essay archiver errors."""


class RendererError(EssayVaultError):
    """The renderer session or page was used in an invalid state."""


class NavigationError(RendererError):
    """A page failed to load."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Navigation to {url} failed: {message}")


class RenderError(RendererError):
    """A page could not be rendered to PDF."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Rendering {path} failed: {message}")
