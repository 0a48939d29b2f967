from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
import structlog

from subguessr.config import settings

log = structlog.get_logger()


@dataclass
class CategoryList:
    categories: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)


def parse_categories(text: str) -> CategoryList:
    """
    Parse a category file: one community name per line, blank lines and
    `#` comments skipped. Lines with an "r/" prefix, spaces, slashes or upper-case
    letters are reported as issues and left out. Duplicates keep first position.
    """
    out = CategoryList()
    seen: set[str] = set()
    for num, line in enumerate(text.splitlines(), start=1):
        name = line.strip()
        if not name or name.startswith("#"):
            continue
        if name.lower().startswith("r/"):
            out.issues.append(f"Line {num}: Remove 'r/' prefix from '{name}'")
        elif " " in name:
            out.issues.append(f"Line {num}: Names cannot contain spaces: '{name}'")
        elif "/" in name:
            out.issues.append(f"Line {num}: Names cannot contain slashes: '{name}'")
        elif name != name.lower():
            out.issues.append(f"Line {num}: Use lowercase: '{name}' -> '{name.lower()}'")
        elif name not in seen:
            seen.add(name)
            out.categories.append(name)
    return out


def load_categories(path: str | Path) -> CategoryList:
    parsed = parse_categories(Path(path).read_text(encoding="utf-8"))
    if parsed.issues:
        log.warning("category_file_issues", path=str(path), issues=parsed.issues)
    log.info("categories_loaded", path=str(path), count=len(parsed.categories))
    return parsed


@lru_cache(maxsize=1)
def configured_categories() -> tuple[str, ...]:
    return tuple(load_categories(settings.categories_file).categories)
