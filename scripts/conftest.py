from __future__ import annotations
from pathlib import Path
from typing import Optional

import pytest
from jinja2 import DictLoader, Environment, select_autoescape

from config import LanguageOptions, SiteConfig, TaxonomyConfig
from converters import ContentEntry
from library import Library
from templates import register_filters
from website import Site


BASE_URL = 'https://example.com'

ATOM_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xml:lang="{{ lang }}">
  <title>{{ config.title }}{% if term %} - {{ term.name }}{% endif %}</title>
  <link rel="self" href="{{ feed_url }}"/>
  <updated>{{ last_updated }}</updated>
  {%- for page in pages %}
  <entry>
    <title>{{ page.title }}</title>
    <id>{{ page.permalink }}</id>
    <published>{{ page.date }}</published>
    {%- if page.updated %}
    <updated>{{ page.updated }}</updated>
    {%- endif %}
  </entry>
  {%- endfor %}
</feed>
"""


def make_entry(slug: str, date: Optional[str] = None, updated: Optional[str] = None,
               section: str = 'blog', lang: str = 'en', title: Optional[str] = None,
               taxonomies: Optional[dict] = None) -> ContentEntry:
    prefix = '' if lang == 'en' else f'{lang}/'
    return ContentEntry(
        path=Path(section) / (f'{slug}.md' if lang == 'en' else f'{slug}.{lang}.md'),
        slug=slug,
        section=section,
        lang=lang,
        title=title or slug.replace('-', ' ').title(),
        permalink=f'{BASE_URL}/{prefix}{section}/{slug}/',
        date=date,
        updated=updated,
        taxonomies=taxonomies or {},
    )


def make_env(templates: Optional[dict] = None) -> Environment:
    env = Environment(
        loader=DictLoader(templates if templates is not None else {'atom.xml': ATOM_TEMPLATE}),
        autoescape=select_autoescape(['html', 'xml']),
        keep_trailing_newline=True,
    )
    register_filters(env)
    return env


def make_site(entries: list[ContentEntry], config: Optional[SiteConfig] = None,
              templates: Optional[dict] = None) -> Site:
    library = Library()
    with library.lock.write_locked():
        for e in entries:
            library.insert(e)
    return Site(config or make_config(), library, make_env(templates))


def make_config(**overrides) -> SiteConfig:
    values = dict(
        base_url=BASE_URL,
        title='Example',
        description='An example site',
        generate_feed=True,
        taxonomies=[TaxonomyConfig(name='tags', feed=True)],
        languages={'fr': LanguageOptions(title='Exemple', generate_feed=True)},
    )
    values.update(overrides)
    return SiteConfig(**values)


@pytest.fixture
def config() -> SiteConfig:
    return make_config()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A small on-disk site with two languages, a tag taxonomy and a theme."""
    (tmp_path / 'config.yaml').write_text(
        'base_url: https://example.com\n'
        'title: Example\n'
        'generate_feed: true\n'
        'section_feeds: true\n'
        'theme: plain\n'
        'taxonomies:\n'
        '  - name: tags\n'
        '    feed: true\n'
        'languages:\n'
        '  fr:\n'
        '    title: Exemple\n'
        '    generate_feed: true\n',
        encoding='utf-8',
    )
    blog = tmp_path / 'content' / 'blog'
    blog.mkdir(parents=True)
    (blog / '2024-01-01-first.md').write_text(
        '---\ntitle: First\ntaxonomies:\n  tags: [Python]\n---\nHello.\n', encoding='utf-8')
    (blog / '2024-01-02-second.md').write_text(
        '---\ntitle: Second & last\nupdated: 2024-03-01\ntaxonomies:\n  tags: [Python, Feeds]\n---\n'
        'Intro.\n\n<!-- more -->\n\nRest.\n', encoding='utf-8')
    (blog / '2024-01-02-second.fr.md').write_text(
        '---\ntitle: Deuxième\n---\nBonjour.\n', encoding='utf-8')
    (blog / 'undated.md').write_text('---\ntitle: Undated\n---\nNo date.\n', encoding='utf-8')
    (blog / '_index.md').write_text('---\ntitle: Blog\n---\n', encoding='utf-8')
    (tmp_path / 'content' / 'about.md').write_text('---\ntitle: About\n---\nAbout.\n', encoding='utf-8')

    theme_templates = tmp_path / 'themes' / 'plain' / 'templates'
    theme_templates.mkdir(parents=True)
    (theme_templates / 'atom.xml').write_text(ATOM_TEMPLATE, encoding='utf-8')
    (tmp_path / 'templates').mkdir()
    return tmp_path
