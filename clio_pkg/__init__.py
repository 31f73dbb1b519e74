"""
Clio - static site generation engine.

Clio turns a site's content snapshot into a markdown document tree and a
rendered HTML tree: stable URL paths, related-content blocks, markdown to
HTML with image captions, YAML front matter and paginated index pages.
"""

__version__ = "1.0.0"

from .errors import ClioError, GenerationError, NotFoundError, RenderError, ValidationError, WriteError
from .generator import Generator
from .renderer import HTMLRenderer
from .service import SiteContext, SiteService
from .snapshot import SnapshotRepo
from .templates import TemplateKey, TemplateManager

__all__ = [
    'ClioError', 'GenerationError', 'NotFoundError', 'RenderError', 'ValidationError', 'WriteError',
    'Generator', 'HTMLRenderer', 'SiteContext', 'SiteService', 'SnapshotRepo',
    'TemplateKey', 'TemplateManager',
]
