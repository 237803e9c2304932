from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.text import Text

from grepnav.core.config import PROFILES, NavigatorConfig, get_profile, load_config_file
from grepnav.core.errors import GrepNavError
from grepnav.core.navigator import Hit, Navigator

logger = logging.getLogger("grepnav")


def render_hit(hit: Hit, *, with_offset: bool = True) -> Text:
    text = Text()
    location = f"{hit.line_number},{hit.column}"
    if with_offset:
        location += f",{hit.offset}"
    text.append(location, style="bold cyan")
    text.append(",")
    text.append(hit.line_text)
    return text


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grepnav", description="Step through fixed-string matches in a file"
    )
    parser.add_argument("path", help="Path to the file to search")
    parser.add_argument("pattern", help="Literal text to find (not a regex)")
    parser.add_argument("--cursor", type=int, default=0, help="Start offset in bytes")
    parser.add_argument("--wrap", action="store_true", help="Wrap around at the file edges")
    parser.add_argument("--prev", action="store_true", help="Step backward instead of forward")
    parser.add_argument("-n", "--steps", type=int, default=1, help="Number of steps to take")
    parser.add_argument("--all", action="store_true", help="Print every match in file order")
    parser.add_argument("--count", action="store_true", help="Print only the number of matches")
    parser.add_argument(
        "--no-offset", action="store_true", help="Omit the absolute offset from output"
    )
    settings = parser.add_mutually_exclusive_group()
    settings.add_argument("--config", help="YAML configuration file")
    settings.add_argument(
        "--profile", choices=sorted(PROFILES), help="Named configuration profile"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    console = Console(highlight=False, soft_wrap=True)
    try:
        config: NavigatorConfig
        if args.config:
            config = load_config_file(args.config)
        else:
            config = get_profile(args.profile or "default")
        nav = Navigator(args.path, args.pattern, config=config)
        if args.wrap:
            nav.set_wrap_enabled(True)
        nav.set_cursor(args.cursor)

        if args.count:
            total = sum(1 for _ in nav.iter_hits())
            console.print(str(total))
            return 0 if total else 1

        if args.all:
            hits = list(nav.iter_hits())
        else:
            hits = []
            step = nav.previous if args.prev else nav.next
            for _ in range(max(0, args.steps)):
                hit = step()
                if hit is None:
                    break
                hits.append(hit)
    except GrepNavError as e:
        print(f"grepnav: {e}", file=sys.stderr)
        return 2

    for hit in hits:
        console.print(render_hit(hit, with_offset=not args.no_offset))
    logger.debug("%d hit(s), cursor now %d", len(hits), nav.get_cursor())
    return 0 if hits else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
