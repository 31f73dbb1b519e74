"""
Block builder: related-content lists for a focal content item.

Lists are computed in a fixed order and every item placed in a list is added
to a claimed set, so later lists of the same bundle never repeat it. Results
follow snapshot order wherever the rules leave a tie.
"""

from .models import GeneratedBlocks, KIND_ARTICLE, KIND_BLOG, KIND_SERIES, naive_utc

DEFAULT_MAX_ITEMS = 5


def limit(items, max_items):
    if max_items <= 0:
        return []
    return list(items[:max_items])


def has_common_tags(a, b):
    if not a.tags or not b.tags:
        return False
    names = {t.name for t in a.tags}
    return any(t.name in names for t in b.tags)


def sort_recent(items):
    """Newest first. Unpublished items go last, both groups keep input order."""
    published = [c for c in items if c.is_published()]
    unpublished = [c for c in items if not c.is_published()]
    published = sorted(published, key=lambda c: naive_utc(c.published_at), reverse=True)
    return published + unpublished


def _unique(items):
    seen = set()
    out = []
    for c in items:
        if c.id not in seen:
            seen.add(c.id)
            out.append(c)
    return out


def _same_bucket(focal, candidate):
    return (candidate.id != focal.id
            and candidate.section_id == focal.section_id
            and candidate.kind == focal.kind)


def _tag_and_recent(focal, snapshot, max_items, claimed):
    pool = _unique(c for c in snapshot if _same_bucket(focal, c) and c.id not in claimed)

    related = limit([c for c in pool if has_common_tags(focal, c)], max_items)
    claimed.update(c.id for c in related)

    rest = [c for c in pool if c.id not in claimed]
    recent = limit(sort_recent(rest), max_items)
    claimed.update(c.id for c in recent)
    return related, recent


def build_blog_blocks(blocks, focal, snapshot, max_items, claimed=None):
    claimed = claimed if claimed is not None else {focal.id}
    blocks.blog_tag_related, blocks.blog_recent = _tag_and_recent(focal, snapshot, max_items, claimed)


def build_article_blocks(blocks, focal, snapshot, max_items, claimed=None):
    claimed = claimed if claimed is not None else {focal.id}
    blocks.article_tag_related, blocks.article_recent = _tag_and_recent(focal, snapshot, max_items, claimed)


def build_series_blocks(blocks, focal, snapshot, max_items, claimed=None):
    """Prev/next pointers plus forward and backward index lists.

    Prev and next are navigation pointers and do not claim items, so the
    neighbours also head the index lists.
    """
    claimed = claimed if claimed is not None else {focal.id}
    members = _unique(c for c in snapshot
                      if c.series == focal.series and c.id != focal.id and c.id not in claimed)

    earlier = [c for c in members if c.series_order < focal.series_order]
    later = [c for c in members if c.series_order > focal.series_order]

    # sorted() is stable, so equal orders keep snapshot order
    later = sorted(later, key=lambda c: c.series_order)
    earlier = sorted(earlier, key=lambda c: -c.series_order)

    blocks.series_next = later[0] if later else None
    blocks.series_prev = earlier[0] if earlier else None

    blocks.series_index_forward = limit(later, max_items)
    claimed.update(c.id for c in blocks.series_index_forward)

    blocks.series_index_backward = limit([c for c in earlier if c.id not in claimed], max_items)
    claimed.update(c.id for c in blocks.series_index_backward)


def build_blocks(focal, snapshot, max_items=DEFAULT_MAX_ITEMS):
    """Compute the GeneratedBlocks bundle for `focal` against `snapshot`."""
    blocks = GeneratedBlocks()
    claimed = {focal.id}

    if focal.kind == KIND_BLOG:
        build_blog_blocks(blocks, focal, snapshot, max_items, claimed)
    elif focal.kind == KIND_ARTICLE:
        build_article_blocks(blocks, focal, snapshot, max_items, claimed)
    elif focal.kind == KIND_SERIES and focal.series:
        build_series_blocks(blocks, focal, snapshot, max_items, claimed)

    return blocks
