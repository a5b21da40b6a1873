"""
taxonomy.py — Taxonomies (tags, categories, ...) built from entry front matter
"""
from __future__ import annotations
from dataclasses import dataclass, field

from config import ConfigError, SiteConfig, TaxonomyConfig
from converters import ContentEntry, slugify
from library import Library


@dataclass(eq=False)
class TaxonomyTerm:
    name: str
    slug: str
    permalink: str
    path: str                    # site-relative, e.g. "tags/python/"
    pages: list[ContentEntry] = field(default_factory=list)


@dataclass(eq=False)
class Taxonomy:
    kind: TaxonomyConfig
    lang: str
    slug: str
    permalink: str
    items: list[TaxonomyTerm] = field(default_factory=list)

    def serialize(self) -> dict:
        return {**self.kind.serialize(), 'lang': self.lang, 'slug': self.slug, 'permalink': self.permalink}


class SerializedFeedTaxonomyItem:
    """Read-only view of a term for feed templates: name, slug and permalink only."""

    __slots__ = ('_term',)

    def __init__(self, term: TaxonomyTerm) -> None:
        self._term = term

    @classmethod
    def from_item(cls, item: TaxonomyTerm) -> SerializedFeedTaxonomyItem:
        return cls(item)

    @property
    def name(self) -> str:
        return self._term.name

    @property
    def slug(self) -> str:
        return self._term.slug

    @property
    def permalink(self) -> str:
        return self._term.permalink

    def __eq__(self, other) -> bool:
        if not isinstance(other, SerializedFeedTaxonomyItem):
            return NotImplemented
        return (self.name, self.slug, self.permalink) == (other.name, other.slug, other.permalink)

    def __repr__(self) -> str:
        return f'SerializedFeedTaxonomyItem(name={self.name!r}, slug={self.slug!r}, permalink={self.permalink!r})'


def find_taxonomies(config: SiteConfig, library: Library) -> list[Taxonomy]:
    """
    One Taxonomy per (language, declared taxonomy), terms sorted by slug.
    An entry using a taxonomy its language doesn't declare is a config error.
    """
    taxonomies: list[Taxonomy] = []
    for lang in config.languages_codes():
        prefix = config.language_prefix(lang)
        declared = {kind.name: kind for kind in config.language_options(lang).taxonomies}
        terms: dict[str, dict[str, TaxonomyTerm]] = {name: {} for name in declared}

        for entry in library.pages_for_lang(lang):
            for name, term_names in entry.taxonomies.items():
                if name not in declared:
                    raise ConfigError(
                        f'{entry.path} uses taxonomy {name!r} which is not declared for language {lang!r}'
                    )
                tax_slug = slugify(name)
                for term_name in term_names:
                    term_slug = slugify(term_name)
                    term = terms[name].get(term_slug)
                    if term is None:
                        path = f'{prefix}{tax_slug}/{term_slug}/'
                        term = TaxonomyTerm(
                            name=term_name,
                            slug=term_slug,
                            permalink=config.make_permalink(path),
                            path=path,
                        )
                        terms[name][term_slug] = term
                    term.pages.append(entry)

        for name, kind in declared.items():
            tax_slug = slugify(name)
            taxonomies.append(Taxonomy(
                kind=kind,
                lang=lang,
                slug=tax_slug,
                permalink=config.make_permalink(f'{prefix}{tax_slug}/'),
                items=[terms[name][s] for s in sorted(terms[name])],
            ))
    return taxonomies
