"""
build_feeds.py — Feed builder entry point
Usage: python scripts/build_feeds.py --root path/to/site [--output public] [--base-url URL]

Site layout:
    config.yaml
    content/<section>/<YYYY-MM-DD-slug>[.<lang>].md
    templates/atom.xml            (or themes/<theme>/templates/atom.xml)
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from config import ConfigError
from website import Site


def write_feeds(feeds: dict[str, str], output_dir: Path) -> list[Path]:
    written = []
    for rel_path, document in sorted(feeds.items()):
        out = output_dir / rel_path
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(document, encoding='utf-8')
        written.append(out)
    return written


# ─── Main ────────────────────────────────────────────────────────────────────
def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Render the feeds of a static site')
    parser.add_argument('--root', default='.', help='Site root holding config.yaml')
    parser.add_argument('--output', default=None, help='Output directory (default: <root>/public)')
    parser.add_argument('--base-url', default=None, help='Override base_url from config.yaml')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    root = Path(args.root)
    output_dir = Path(args.output) if args.output else root / 'public'

    # 1. Load config + content
    print(f'Loading site from {root}...')
    try:
        site = Site.load(root, base_url=args.base_url)
    except ConfigError as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 1
    print(f'  {len(site.library)} entr{"y" if len(site.library) == 1 else "ies"} loaded')

    # 2. Render feeds (template errors abort the build)
    feeds = site.render_feeds()
    if not feeds:
        print('  No dated entries: no feed generated')
        return 0

    # 3. Write
    for out in write_feeds(feeds, output_dir):
        print(f'  Generated {out.relative_to(output_dir).as_posix()}')

    print(f'\nBuild complete. Output: {output_dir}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
