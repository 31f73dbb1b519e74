"""
Error types raised by the Clio generation engine.

Every error can carry the site slug and content id it relates to, so a
failure deep inside a run can be located without re-running it.
"""

from typing import List, Optional


class ClioError(Exception):
    """Base class for all Clio errors."""

    def __init__(self, message: str, site_slug: Optional[str] = None, content_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.site_slug = site_slug
        self.content_id = content_id

    def __str__(self):
        where = []
        if self.site_slug:
            where.append(f"site={self.site_slug}")
        if self.content_id:
            where.append(f"content={self.content_id}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class NotFoundError(ClioError):
    """A content item, section or site could not be found."""


class ValidationError(ClioError):
    """Invalid input: unknown site mode, missing site context, bad set policy."""


class RenderError(ClioError):
    """The markdown or template collaborator failed."""


class WriteError(ClioError):
    """A file or directory could not be written."""


class GenerationError(ClioError):
    """A generation run was aborted. `errors` holds the item failures."""

    def __init__(self, message: str, errors: List[ClioError], site_slug: Optional[str] = None):
        super().__init__(message, site_slug=site_slug)
        self.errors = list(errors)

    def __str__(self):
        base = super().__str__()
        if not self.errors:
            return base
        details = '; '.join(str(e) for e in self.errors)
        return f"{base}: {details}"
