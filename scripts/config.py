"""
config.py — Site configuration for the feed builder
Reads config.yaml at the site root (PyYAML) into typed dataclasses.
Permalinks for pages, terms and feeds are all built through SiteConfig.make_permalink.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


CONFIG_FILENAME = 'config.yaml'
DEFAULT_FEED_FILENAME = 'atom.xml'


class ConfigError(ValueError):
    """Raised when config.yaml is missing a required key or holds a bad value."""


@dataclass
class TaxonomyConfig:
    name: str
    feed: bool = False

    def serialize(self) -> dict:
        return {'name': self.name, 'feed': self.feed}


@dataclass
class LanguageOptions:
    title: Optional[str] = None
    description: Optional[str] = None
    generate_feed: bool = False
    taxonomies: list[TaxonomyConfig] = field(default_factory=list)


@dataclass
class SiteConfig:
    base_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    default_language: str = 'en'
    generate_feed: bool = False
    feed_filename: str = DEFAULT_FEED_FILENAME
    feed_limit: Optional[int] = None      # None = every dated entry
    theme: Optional[str] = None
    section_feeds: bool = False
    taxonomies: list[TaxonomyConfig] = field(default_factory=list)
    languages: dict[str, LanguageOptions] = field(default_factory=dict)
    extra: dict = field(default_factory=dict)

    # ─── Languages ──────────────────────────────────────────────────────────
    def languages_codes(self) -> list[str]:
        """Default language first, then the others in a stable order."""
        others = sorted(code for code in self.languages if code != self.default_language)
        return [self.default_language] + others

    def language_prefix(self, lang: str) -> str:
        """URL prefix for a language: '' for the default one, 'fr/' otherwise."""
        return '' if lang == self.default_language else f'{lang}/'

    def language_options(self, lang: str) -> LanguageOptions:
        if lang == self.default_language:
            return LanguageOptions(
                title=self.title,
                description=self.description,
                generate_feed=self.generate_feed,
                taxonomies=self.taxonomies,
            )
        try:
            return self.languages[lang]
        except KeyError:
            raise ConfigError(f'Language {lang!r} is not declared in {CONFIG_FILENAME}') from None

    # ─── Permalinks ─────────────────────────────────────────────────────────
    def make_permalink(self, path: str) -> str:
        """
        Join base_url and a site-relative path into an absolute URL.
        Adds a trailing slash unless the path is empty, already ends with one,
        or points at the feed file.
        """
        if path.endswith('/') or path.endswith(self.feed_filename) or not path:
            trailing = ''
        else:
            trailing = '/'

        base = self.base_url
        if path == '/':
            return base if base.endswith('/') else f'{base}/'
        if base.endswith('/') and path.startswith('/'):
            return f'{base}{path[1:]}{trailing}'
        if base.endswith('/') or path.startswith('/'):
            return f'{base}{path}{trailing}'
        return f'{base}/{path}{trailing}'

    # ─── Serialization ──────────────────────────────────────────────────────
    def serialize(self, lang: str) -> dict:
        """The config as templates see it, with per-language fields resolved."""
        options = self.language_options(lang)
        return {
            'base_url': self.base_url,
            'title': options.title,
            'description': options.description,
            'default_language': self.default_language,
            'languages': {code: {'title': opts.title, 'description': opts.description}
                          for code, opts in self.languages.items()},
            'generate_feed': options.generate_feed,
            'feed_filename': self.feed_filename,
            'feed_limit': self.feed_limit,
            'taxonomies': [t.serialize() for t in options.taxonomies],
            'extra': self.extra,
        }


# ─── Loading ────────────────────────────────────────────────────────────────
def _parse_taxonomies(raw, where: str) -> list[TaxonomyConfig]:
    taxonomies = []
    for item in raw or []:
        if isinstance(item, str):
            taxonomies.append(TaxonomyConfig(name=item))
        elif isinstance(item, dict) and item.get('name'):
            taxonomies.append(TaxonomyConfig(name=str(item['name']), feed=bool(item.get('feed', False))))
        else:
            raise ConfigError(f'{where}: taxonomy entries need a name, got {item!r}')
    return taxonomies


def _parse_feed_limit(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f'feed_limit must be a non-negative integer, got {value!r}')
    return value


def parse_config(data: dict) -> SiteConfig:
    """Build a SiteConfig from the mapping found in config.yaml."""
    if not isinstance(data, dict):
        raise ConfigError(f'{CONFIG_FILENAME} must contain a mapping')
    base_url = data.get('base_url')
    if not base_url:
        raise ConfigError(f'{CONFIG_FILENAME}: base_url is required')

    feed_filename = str(data.get('feed_filename', DEFAULT_FEED_FILENAME)).strip()
    if not feed_filename:
        raise ConfigError(f'{CONFIG_FILENAME}: feed_filename cannot be empty')

    default_language = str(data.get('default_language', 'en'))
    languages: dict[str, LanguageOptions] = {}
    for code, opts in (data.get('languages') or {}).items():
        opts = opts or {}
        languages[str(code)] = LanguageOptions(
            title=opts.get('title'),
            description=opts.get('description'),
            generate_feed=bool(opts.get('generate_feed', False)),
            taxonomies=_parse_taxonomies(opts.get('taxonomies'), f'languages.{code}'),
        )
    languages.pop(default_language, None)

    return SiteConfig(
        base_url=str(base_url),
        title=data.get('title'),
        description=data.get('description'),
        default_language=default_language,
        generate_feed=bool(data.get('generate_feed', False)),
        feed_filename=feed_filename,
        feed_limit=_parse_feed_limit(data.get('feed_limit')),
        theme=data.get('theme') or None,
        section_feeds=bool(data.get('section_feeds', False)),
        taxonomies=_parse_taxonomies(data.get('taxonomies'), 'taxonomies'),
        languages=languages,
        extra=data.get('extra') or {},
    )


def load_config(path: Path, base_url: Optional[str] = None) -> SiteConfig:
    """Read config.yaml; base_url overrides the configured one (e.g. for previews)."""
    if not path.exists():
        raise ConfigError(f'{path} not found')
    data = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
    if base_url and isinstance(data, dict):
        data['base_url'] = base_url
    return parse_config(data)
