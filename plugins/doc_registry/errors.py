from typing import List, Optional

from mkdocs.exceptions import PluginError


class InvalidDocsSpecError(PluginError):
    """Raised when a docs specification fails validation."""

    def __init__(self, errors: List[str], source: Optional[str] = None):
        self.errors = list(errors)
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(
            f"Invalid docs specification{where}: " + "; ".join(self.errors)
        )


class RegistryConstructionError(PluginError):
    """Raised when a DocRegistry is built from data that was never validated."""


class ContentLoadError(PluginError):
    """Raised when a document body cannot be loaded during aggregation."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load content for '{path}': {reason}")


class LLMContentError(PluginError):
    """Raised for malformed bundle definitions or bundle JSON."""


class SitemapSourceError(PluginError):
    """Raised when a route manifest or dated-content index cannot be read."""
