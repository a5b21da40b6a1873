"""
templates.py — Jinja2 environment and theme-aware rendering
Site templates win over theme templates; a theme template is addressed as
"<theme>/templates/<name>" under the themes directory.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from dateutil.parser import parse as parse_date
from jinja2 import Environment, FileSystemLoader, select_autoescape


def _date_format(value: Optional[str], fmt: str = '%Y-%m-%d') -> str:
    if not value:
        return ''
    return parse_date(value).strftime(fmt)


def make_env(templates_dir: Path, themes_dir: Optional[Path] = None) -> Environment:
    search_path = [str(templates_dir)]
    if themes_dir is not None:
        search_path.append(str(themes_dir))
    env = Environment(
        loader=FileSystemLoader(search_path),
        autoescape=select_autoescape(['html', 'xml']),
        keep_trailing_newline=True,
    )
    register_filters(env)
    return env


def register_filters(env: Environment) -> None:
    env.filters['urlencode'] = lambda s: quote(str(s), safe='/:')
    env.filters['date_format'] = _date_format


def render_template(name: str, env: Environment, context: dict, theme: Optional[str]) -> str:
    """
    Render name with context. Falls back to the theme's copy when a theme is set.
    Jinja2 errors (missing template, syntax, undefined) are raised as-is.
    """
    if theme:
        template = env.select_template([name, f'{theme}/templates/{name}'])
    else:
        template = env.get_template(name)
    return template.render(**context)
