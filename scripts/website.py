"""
website.py — Site state shared by one render pass
Site.load() fills the config, library, taxonomies and template env up front;
after that nothing is mutated while feeds render.
"""
from __future__ import annotations
import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from jinja2 import Environment

from config import CONFIG_FILENAME, SiteConfig, load_config
from converters import scan_content
from feed import render_feed
from library import Library
from taxonomy import SerializedFeedTaxonomyItem, Taxonomy, TaxonomyTerm, find_taxonomies
from templates import make_env

logger = logging.getLogger(__name__)


class Site:
    def __init__(self, config: SiteConfig, library: Library, env: Environment,
                 taxonomies: Optional[list[Taxonomy]] = None) -> None:
        self.config = config
        self.library = library
        self.env = env
        self.taxonomies = taxonomies or []

    @classmethod
    def load(cls, root: Path, base_url: Optional[str] = None) -> Site:
        config = load_config(root / CONFIG_FILENAME, base_url=base_url)
        library = Library()
        with library.lock.write_locked():
            for entry in scan_content(root / 'content', config):
                library.insert(entry)
        logger.info('loaded %d entries from %s', len(library), root / 'content')
        with library.lock.read_locked():
            taxonomies = find_taxonomies(config, library)
        env = make_env(root / 'templates', root / 'themes')
        return cls(config, library, env, taxonomies)

    # ─── Feeds ──────────────────────────────────────────────────────────────
    def _feed_path(self, lang: str, base: Optional[str] = None) -> str:
        prefix = self.config.language_prefix(lang)
        parts = [p for p in (prefix, base) if p]
        return str(PurePosixPath(*parts, self.config.feed_filename))

    @staticmethod
    def _term_context(taxonomy: Taxonomy, term: TaxonomyTerm):
        def extend(context: dict) -> dict:
            return {
                **context,
                'taxonomy': taxonomy.serialize(),
                'term': SerializedFeedTaxonomyItem.from_item(term),
            }
        return extend

    def render_feeds(self) -> dict[str, str]:
        """
        Every feed of the site as {output-relative path: document}.
        Feeds without a single dated entry are left out.
        """
        feeds: dict[str, str] = {}
        with self.library.lock.read_locked():
            pages_by_lang = {lang: self.library.pages_for_lang(lang)
                             for lang in self.config.languages_codes()}
            sections_by_lang = {lang: {section: self.library.pages_for_section(section, lang)
                                       for section in self.library.sections(lang)}
                                for lang in self.config.languages_codes()}

        for lang, pages in pages_by_lang.items():
            prefix = self.config.language_prefix(lang)
            base = Path(prefix) if prefix else None

            if self.config.language_options(lang).generate_feed:
                doc = render_feed(self, pages, lang, base)
                if doc is not None:
                    feeds[self._feed_path(lang)] = doc

            if self.config.section_feeds:
                for section, section_pages in sections_by_lang[lang].items():
                    doc = render_feed(self, section_pages, lang, Path(prefix) / section)
                    if doc is not None:
                        feeds[self._feed_path(lang, section)] = doc

        for taxonomy in self.taxonomies:
            if not taxonomy.kind.feed:
                continue
            for term in taxonomy.items:
                term_base = term.path.rstrip('/')
                doc = render_feed(self, term.pages, taxonomy.lang, Path(term_base),
                                  self._term_context(taxonomy, term))
                if doc is not None:
                    feeds[f'{term_base}/{self.config.feed_filename}'] = doc

        logger.info('rendered %d feed(s)', len(feeds))
        return feeds
