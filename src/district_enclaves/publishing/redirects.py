"""Redirects from dated post folders to canonical slugs"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union


logger = logging.getLogger(__name__)

DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}-")
NON_SLUG = re.compile(r"[^a-z0-9]+")


def canonical_slug(folder_name: str) -> str:
    """``2023-05-01-School Districts!`` -> ``school-districts``"""
    slug = DATE_PREFIX.sub("", folder_name).lower()
    return NON_SLUG.sub("-", slug).strip("-")


def build_redirects(post_names: Iterable[str]) -> List[Tuple[str, str]]:
    """
    Map old post folder names to canonical slugs

    Folders already named by their slug need no redirect.

    Raises:
        ValueError: if two folders collapse to the same slug
    """
    seen: Dict[str, str] = {}
    redirects = []

    for name in sorted(post_names):
        slug = canonical_slug(name)
        if not slug:
            raise ValueError(f"Post folder {name!r} has no usable slug")
        if slug in seen:
            raise ValueError(f"Posts {seen[slug]!r} and {name!r} share the slug {slug!r}")
        seen[slug] = name

        if slug != name:
            redirects.append((name, slug))

    return redirects


def format_redirects(redirects: List[Tuple[str, str]], prefix: str = "/posts",
                     status: int = 301) -> str:
    """Render Netlify ``_redirects`` lines"""
    prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
    lines = [f"{prefix}/{old}/ {prefix}/{new}/ {status}" for old, new in redirects]
    return "\n".join(lines) + ("\n" if lines else "")


def write_redirects(posts_dir: Union[str, Path], output: Union[str, Path],
                    prefix: str = "/posts") -> List[Tuple[str, str]]:
    """Scan ``posts_dir`` for post folders and write the redirect file"""
    posts_dir = Path(posts_dir)
    if not posts_dir.is_dir():
        raise ValueError(f"Posts directory not found: {posts_dir}")

    names = [p.name for p in posts_dir.iterdir() if p.is_dir() and not p.name.startswith(("_", "."))]
    redirects = build_redirects(names)

    Path(output).write_text(format_redirects(redirects, prefix), encoding="utf-8")
    logger.info(f"Wrote {len(redirects)} redirects to {output}")

    return redirects
