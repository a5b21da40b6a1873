"""
feed.py — Feed generation for the site builder
Picks the dated entries, orders them newest-first, works out the feed's
last_updated value and renders the feed template (atom.xml by default).
The feed schema lives entirely in the template; this module does no I/O.
"""
from __future__ import annotations
import logging
from functools import cmp_to_key
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from templates import render_template

if TYPE_CHECKING:
    from config import SiteConfig
    from converters import ContentEntry
    from library import Library
    from website import Site

logger = logging.getLogger(__name__)

ContextFn = Callable[[dict], dict]


def _unchanged(context: dict) -> dict:
    return context


def filter_dated(entries: Iterable[ContentEntry]) -> list[ContentEntry]:
    """Only entries with a date can go in a feed."""
    return [e for e in entries if e.date]


def _newest_first(a: ContentEntry, b: ContentEntry) -> int:
    if a.date != b.date:
        return -1 if a.date > b.date else 1
    # Permalinks are unique, so this never falls through to 0 for distinct entries
    if a.permalink != b.permalink:
        return -1 if a.permalink < b.permalink else 1
    return 0


def sort_newest_first(entries: Iterable[ContentEntry]) -> list[ContentEntry]:
    """Date descending, permalink ascending on equal dates. Input order never matters."""
    return sorted(entries, key=cmp_to_key(_newest_first))


def last_updated(ordered: list[ContentEntry]) -> str:
    """
    Latest of every entry's `updated` and the newest entry's `date`.

    Compares plain strings: dates must already be fixed-width ISO-8601
    (converters.normalize_date). `ordered` must be non-empty.
    """
    candidates = [e.updated for e in ordered if e.updated]
    candidates.append(ordered[0].date)
    return max(candidates)


def feed_url(config: SiteConfig, base_path: Optional[Path] = None) -> str:
    if base_path is None:
        return config.make_permalink(config.feed_filename)
    joined = str(Path(base_path) / config.feed_filename).replace('\\', '/')
    return config.make_permalink(joined)


def build_context(ordered: list[ContentEntry], updated: str, lang: str,
                  base_path: Optional[Path], config: SiteConfig, library: Library) -> dict:
    limit = config.feed_limit if config.feed_limit is not None else len(ordered)
    with library.lock.read_locked():
        pages = [e.serialize_without_siblings(library) for e in ordered[:limit]]
    return {
        'last_updated': updated,
        'pages': pages,
        'config': config.serialize(lang),
        'lang': lang,
        'feed_url': feed_url(config, base_path),
    }


def render_feed(site: Site, all_pages: Iterable[ContentEntry], lang: str,
                base_path: Optional[Path] = None,
                additional_context_fn: ContextFn = _unchanged) -> Optional[str]:
    """
    Render the feed for all_pages, or None when none of them has a date.
    additional_context_fn gets the built context and returns the one to render.
    """
    pages = filter_dated(all_pages)
    if not pages:
        logger.debug('no dated pages for %s feed at %s, skipping', lang, base_path or '/')
        return None

    ordered = sort_newest_first(pages)
    context = build_context(ordered, last_updated(ordered), lang, base_path,
                            site.config, site.library)
    context = additional_context_fn(context)

    return render_template(site.config.feed_filename, site.env, context, site.config.theme)
