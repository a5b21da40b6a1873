"""
converters.py — Markdown content loading for the feed builder
Front matter via python-frontmatter, bodies via markdown-it-py, dates via dateutil.
Every date leaves this module as fixed-width ISO-8601 (see normalize_date) so the
feed code can compare them as plain strings.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import frontmatter
import yaml
from dateutil.parser import parse as parse_date
from markdown_it import MarkdownIt

from config import SiteConfig

if TYPE_CHECKING:
    from library import Library

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ContentEntry:
    path: Path                   # relative to content/, unique
    slug: str
    section: str
    lang: str
    title: str
    permalink: str
    date: Optional[str] = None       # "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM:SSZ"
    updated: Optional[str] = None
    datetime: Optional[datetime] = None
    description: Optional[str] = None
    summary: Optional[str] = None    # HTML before <!-- more -->, if any
    content: str = ''                # HTML
    author: Optional[str] = None
    draft: bool = False
    taxonomies: dict[str, list[str]] = field(default_factory=dict)
    extra: dict = field(default_factory=dict)

    @property
    def translation_key(self) -> tuple[str, str]:
        return self.section, self.slug

    def serialize_without_siblings(self, library: Library) -> dict:
        """Template view of the entry; caller holds library.lock for reading."""
        return {
            'title': self.title,
            'description': self.description,
            'permalink': self.permalink,
            'slug': self.slug,
            'section': self.section,
            'lang': self.lang,
            'date': self.date,
            'updated': self.updated,
            'summary': self.summary,
            'content': self.content,
            'author': self.author,
            'taxonomies': self.taxonomies,
            'extra': self.extra,
            'translations': [
                {'lang': t.lang, 'title': t.title, 'permalink': t.permalink}
                for t in library.translations_of(self)
            ],
        }


_md = MarkdownIt()
_DATE_PREFIX = re.compile(r'^(\d{4}-\d{2}-\d{2})[-_](.+)$')
_DATE_ONLY = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_MORE_MARKER = re.compile(r'<!--\s*more\s*-->')


def slugify(text: str) -> str:
    text = re.sub(r'[^\w\s-]', '', text.lower())
    return re.sub(r'[\s_-]+', '-', text).strip('-')


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def normalize_date(value) -> Optional[str]:
    """
    Fixed-width ISO-8601 for any front matter date.
    Plain dates stay "YYYY-MM-DD"; anything with a time becomes UTC
    "YYYY-MM-DDTHH:MM:SSZ", which still sorts after its own day.
    Raises ValueError for text dateutil can't read.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return _utc_iso(value)
    if isinstance(value, date_type):
        return value.isoformat()
    text = str(value).strip()
    if _DATE_ONLY.match(text):
        return date_type.fromisoformat(text).isoformat()
    return _utc_iso(parse_date(text))


def _to_datetime(iso: Optional[str]) -> Optional[datetime]:
    if not iso:
        return None
    parsed = parse_date(iso)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_filename(stem: str, config: SiteConfig) -> tuple[Optional[str], str, Optional[str]]:
    """Extract (date_str, slug, lang) from a stem like "2024-01-02-hello.fr"."""
    lang = None
    base, _, suffix = stem.rpartition('.')
    if base and (suffix in config.languages or suffix == config.default_language):
        stem, lang = base, suffix
    m = _DATE_PREFIX.match(stem)
    if m:
        return m.group(1), m.group(2), lang
    return None, stem, lang


def _first_paragraph(text: str) -> Optional[str]:
    for block in re.split(r'\n\s*\n', text.strip()):
        block = block.strip()
        if block and not block.startswith('#'):
            return _md.render(block).strip()
    return None


def _taxonomies(meta: dict) -> dict[str, list[str]]:
    raw = meta.get('taxonomies') or {}
    if not isinstance(raw, dict):
        raise ValueError(f'taxonomies must be a mapping, got {raw!r}')
    taxonomies = {}
    for name, terms in raw.items():
        if terms is None:
            terms = []
        if not isinstance(terms, list):
            raise ValueError(f'taxonomy {name!r} must be a list of terms, got {terms!r}')
        taxonomies[str(name)] = [str(term) for term in terms]
    return taxonomies


# ─────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────

def convert_markdown(path: Path, content_dir: Path, config: SiteConfig) -> ContentEntry:
    rel = path.relative_to(content_dir)
    section = rel.parent.as_posix() if rel.parent != Path('.') else ''
    date_str, slug, lang = _parse_filename(path.stem, config)

    post = frontmatter.load(str(path))
    meta = post.metadata
    lang = str(meta.get('lang') or lang or config.default_language)
    slug = str(meta.get('slug') or slugify(slug))

    try:
        date = normalize_date(meta.get('date', date_str))
        updated = normalize_date(meta.get('updated'))
    except (ValueError, OverflowError) as e:
        raise ValueError(f'{rel}: unreadable date ({e})') from e

    try:
        taxonomies = _taxonomies(meta)
    except ValueError as e:
        raise ValueError(f'{rel}: {e}') from e

    parts = _MORE_MARKER.split(post.content, maxsplit=1)
    summary = _md.render(parts[0]).strip() if len(parts) == 2 else None

    url_path = f'{config.language_prefix(lang)}{section}/{slug}/' if section \
        else f'{config.language_prefix(lang)}{slug}/'

    return ContentEntry(
        path=rel,
        slug=slug,
        section=section,
        lang=lang,
        title=str(meta.get('title', slug.replace('-', ' ').title())),
        permalink=config.make_permalink(url_path),
        date=date,
        updated=updated,
        datetime=_to_datetime(date),
        description=meta.get('description') or _first_paragraph(post.content),
        summary=summary,
        content=_md.render(post.content),
        author=meta.get('author'),
        draft=bool(meta.get('draft', False)),
        taxonomies=taxonomies,
        extra=meta.get('extra') or {},
    )


def scan_content(content_dir: Path, config: SiteConfig) -> list[ContentEntry]:
    """Every publishable entry under content_dir; broken files are logged and skipped."""
    entries: list[ContentEntry] = []
    if not content_dir.exists():
        return entries
    for f in sorted(content_dir.rglob('*.md')):
        if f.name.startswith('_index.'):
            continue
        try:
            entry = convert_markdown(f, content_dir, config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning('failed to convert %s: %s', f, e)
            continue
        if entry.draft:
            logger.debug('skipping draft %s', entry.path)
            continue
        entries.append(entry)
    return entries
