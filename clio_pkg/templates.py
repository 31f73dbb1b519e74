"""
Jinja2 template lookup for rendered pages.

A template is addressed by a TemplateKey (layout, kind). Resolution falls
back from the most specific file to the global layout:

    {layout}/{kind}.html -> {layout}/layout.html -> {kind}.html -> layout.html

Resolved templates are cached per key. The cache is filled under a lock and
read without one, so a manager can be shared by render workers.
"""

import logging
import os
import threading
from typing import Dict, List, NamedTuple, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound

from .errors import RenderError

DEFAULT_LAYOUT = 'layout'
INDEX_KIND = 'index'
PACKAGE_TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


class TemplateKey(NamedTuple):
    layout: str
    kind: str


def candidate_names(key: TemplateKey) -> List[str]:
    names = []
    if key.layout:
        names.append(f"{key.layout}/{key.kind}.html")
        names.append(f"{key.layout}/{DEFAULT_LAYOUT}.html")
    names.append(f"{key.kind}.html")
    names.append(f"{DEFAULT_LAYOUT}.html")
    return names


class TemplateManager:
    def __init__(self, templates_dir: Optional[str] = None, logger=None):
        self.templates_dir = templates_dir or PACKAGE_TEMPLATES_DIR
        self.logger = logger or logging.getLogger('clio.templates')
        search_path = [self.templates_dir]
        if self.templates_dir != PACKAGE_TEMPLATES_DIR:
            # site templates can extend the packaged base.html
            search_path.append(PACKAGE_TEMPLATES_DIR)
        self.env = Environment(loader=FileSystemLoader(search_path))
        self._cache: Dict[TemplateKey, object] = {}
        self._lock = threading.Lock()

    def get(self, key: TemplateKey):
        template = self._cache.get(key)
        if template is not None:
            return template
        with self._lock:
            template = self._cache.get(key)
            if template is None:
                template = self._resolve(key)
                self._cache[key] = template
        return template

    def _resolve(self, key: TemplateKey):
        names = candidate_names(key)
        for name in names:
            try:
                template = self.env.get_template(name)
            except TemplateNotFound:
                continue
            except TemplateError as e:
                self.logger.error(f"Template error in {name}: {e}")
                raise RenderError(f"Template error in {name}: {e}") from e
            self.logger.debug(f"Resolved template {key.layout}:{key.kind} -> {name}")
            return template
        raise RenderError(f"No template found for {key.layout}:{key.kind} (tried {', '.join(names)})")

    def render(self, key: TemplateKey, data: dict) -> str:
        template = self.get(key)
        try:
            return template.render(**data)
        except TemplateError as e:
            self.logger.error(f"Template rendering failed for {key.layout}:{key.kind}: {e}")
            raise RenderError(f"Template rendering failed for {key.layout}:{key.kind}: {e}") from e
