"""
Markdown to HTML conversion.

Rendering is delegated to mistune. Images get a post-pass over the rendered
HTML: each <img> is tagged with a presentation class, and an alt text of the
form `alt|||caption` turns the image into a captioned <figure>.
"""

import html
import logging
import re

import mistune

from .errors import RenderError
from .models import ImageContext

IMG_CLASS = 'prose-img'
FIGURE_CLASS = 'prose-figure'
FIGCAPTION_CLASS = 'prose-figcaption'
CAPTION_SEPARATOR = '|||'

_IMG_RE = re.compile(r'<img\b([^>]*?)\s*(/?)>', re.IGNORECASE)


def _attr_re(name):
    return re.compile(r'(?<![\w-])' + name + r'="([^"]*)"', re.IGNORECASE)


_ALT_RE = _attr_re('alt')
_SRC_RE = _attr_re('src')
_TITLE_RE = _attr_re('title')
_CLASS_RE = _attr_re('class')


class CustomRenderer(mistune.HTMLRenderer):
    """HTML renderer that lets authors embed raw HTML (media, iframes)."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code, info=None):
        lang = info.strip().split(None, 1)[0] if info and info.strip() else ''
        escaped_code = mistune.escape(code)
        if lang:
            return '<pre><code class="language-{}">{}</code></pre>\n'.format(mistune.escape(lang), escaped_code)
        return '<pre><code>{}</code></pre>\n'.format(escaped_code)


def create_markdown_parser():
    """Create a mistune markdown parser with the custom renderer."""
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


def _set_attr(attrs, pattern, name, value):
    escaped = html.escape(value, quote=True)
    if pattern.search(attrs):
        return pattern.sub(lambda m: f'{name}="{escaped}"', attrs, count=1)
    return f'{attrs} {name}="{escaped}"'


def _enhance_image(match, image_context):
    attrs, self_closing = match.group(1), match.group(2)

    meta = None
    if image_context is not None:
        src = _SRC_RE.search(attrs)
        meta = image_context.lookup(html.unescape(src.group(1))) if src else None

    alt_match = _ALT_RE.search(attrs)
    alt = alt_match.group(1) if alt_match else ''

    if meta is not None:
        if not alt and meta.alt_text:
            alt = html.escape(meta.alt_text, quote=True)
            attrs = _set_attr(attrs, _ALT_RE, 'alt', meta.alt_text)
        if meta.title and not _TITLE_RE.search(attrs):
            attrs = _set_attr(attrs, _TITLE_RE, 'title', meta.title)

    caption = None
    if CAPTION_SEPARATOR in alt:
        alt, caption = alt.split(CAPTION_SEPARATOR, 1)
        alt, caption = alt.strip(), caption.strip()
        # alt is already escaped here, write it back as is
        attrs = _ALT_RE.sub(lambda m: f'alt="{alt}"', attrs, count=1)

    class_match = _CLASS_RE.search(attrs)
    if class_match:
        classes = class_match.group(1).split()
        if IMG_CLASS not in classes:
            classes.append(IMG_CLASS)
        attrs = _CLASS_RE.sub(lambda m: 'class="{}"'.format(' '.join(classes)), attrs, count=1)
    else:
        attrs = f'{attrs} class="{IMG_CLASS}"'

    closing = ' />' if self_closing else '>'
    img = f'<img{attrs}{closing}'
    if caption is None:
        return img
    return (f'<figure class="{FIGURE_CLASS}">{img}'
            f'<figcaption class="{FIGCAPTION_CLASS}">{caption}</figcaption></figure>')


def enhance_images_in_html(rendered, image_context=None):
    """Decorate every <img> in `rendered`; everything else is left as is."""
    if '<img' not in rendered and '<IMG' not in rendered:
        return rendered
    return _IMG_RE.sub(lambda m: _enhance_image(m, image_context), rendered)


class MarkdownProcessor:
    def __init__(self, image_context=None, logger=None):
        self.image_context = image_context
        self.logger = logger or logging.getLogger('clio.processor')
        self.parser = create_markdown_parser()

    def to_html(self, markdown):
        """Convert markdown text to HTML."""
        if isinstance(markdown, bytes):
            markdown = markdown.decode('utf-8')
        if not markdown:
            return ''
        try:
            return self.parser(markdown)
        except Exception as e:
            self.logger.error(f"Markdown rendering failed: {e}")
            raise RenderError(f"Markdown rendering failed: {e}") from e

    def to_html_with_image_context(self, markdown, image_context=None):
        """Convert markdown to HTML and run the image enhancement pass."""
        rendered = self.to_html(markdown)
        ctx = image_context if image_context is not None else self.image_context
        return enhance_images_in_html(rendered, ctx or ImageContext())
