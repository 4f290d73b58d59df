import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from mkdocs.utils import log

from plugins.doc_registry.errors import SitemapSourceError
from plugins.doc_registry.registry import DocRegistry
from plugins.doc_registry.spec import normalize_route_path

# Routes matching any of these never show up in the sitemap unless asked for
EXCLUDE_DEV = r"^/dev(/.*)?$"
HIDDEN_ROUTE_PATTERNS = (EXCLUDE_DEV,)

DEFAULT_EXCLUDED_ROUTES = ("/404",)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def is_hidden_route(route: str, patterns: Iterable[str] = HIDDEN_ROUTE_PATTERNS) -> bool:
    return any(re.search(pattern, route) for pattern in patterns)


def read_route_manifest(path, exclude: Iterable[str] = ()) -> List[str]:
    """
    Extract static routes from a JSON route manifest: ``{"routes": {route: ...}}``.

    Root and dynamic (``$``) entries are dropped and trailing slashes are
    normalized to match the served URLs.
    """
    manifest_path = Path(path)
    try:
        with manifest_path.open("r", encoding="utf-8") as f:
            manifest = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise SitemapSourceError(
            f"unable to read route manifest {manifest_path}: {exc}"
        ) from exc
    routes = manifest.get("routes") if isinstance(manifest, dict) else None
    if not isinstance(routes, dict):
        log.warning(f"[docs_sitemap] no 'routes' object in {manifest_path}")
        return []
    excluded = {normalize_route_path(route) for route in exclude}
    result = set()
    for route in routes:
        if route == "__root__" or "$" in route:
            continue
        route = normalize_route_path(route)
        if route not in excluded:
            result.add(route)
    return sorted(result)


def get_docs_routes(registry: DocRegistry) -> List[str]:
    return sorted(doc.route_path for doc in registry.get_all_docs())


def get_all_routes(
    declared: Iterable[str],
    doc_routes: Iterable[str],
    bundle_routes: Iterable[str],
    include_hidden: bool = False,
    patterns: Iterable[str] = HIDDEN_ROUTE_PATTERNS,
    exclude: Iterable[str] = DEFAULT_EXCLUDED_ROUTES,
) -> List[str]:
    """Union of every route source, deduplicated, filtered and sorted."""
    patterns = tuple(patterns)
    excluded = {normalize_route_path(route) for route in exclude}
    combined = set(declared) | set(doc_routes) | set(bundle_routes)
    return sorted(
        route
        for route in combined
        if route not in excluded and (include_hidden or not is_hidden_route(route, patterns))
    )


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str


def listing_item_slug(route: str, listing_route: str) -> Optional[str]:
    """The item slug when ``route`` sits directly below the listing route."""
    listing_route = normalize_route_path(listing_route)
    # a root listing would claim every page as an item
    if listing_route == "/" or not route.startswith(listing_route + "/"):
        return None
    return route[len(listing_route) + 1 :]


def change_frequency(route: str, listing_route: str = "/blog") -> str:
    """Dated content below the listing route changes weekly, everything else daily."""
    if listing_item_slug(route, listing_route) is not None:
        return "weekly"
    return "daily"


def item_dates(dated_items: Optional[Sequence[dict]]) -> Dict[str, str]:
    """slug -> last modification date, preferring lastUpdated over date."""
    dates = {}
    for idx, item in enumerate(dated_items or []):
        if not isinstance(item, dict):
            raise SitemapSourceError(
                f"dated item [{idx}] must be an object, got {item!r}"
            )
        slug = item.get("slug")
        date = item.get("lastUpdated") or item.get("date")
        if slug and date:
            dates[str(slug)] = str(date)
    return dates


def build_sitemap_entries(
    routes: Sequence[str],
    bundle_routes: Sequence[str],
    site_url: str,
    today: str,
    dated_items: Optional[Sequence[dict]] = None,
    listing_route: str = "/blog",
) -> List[SitemapEntry]:
    base = site_url.rstrip("/")
    listing_route = normalize_route_path(listing_route)
    dates = item_dates(dated_items)
    latest = max(dates.values()) if dates else today

    # bundles that were filtered out of ``routes`` get no .txt entry either
    entries = [
        SitemapEntry(f"{base}{route}.txt", today, "daily")
        for route in sorted(set(bundle_routes) & set(routes))
    ]
    for route in routes:
        slug = listing_item_slug(route, listing_route)
        if route == listing_route:
            lastmod = latest
        elif slug is not None:
            lastmod = dates.get(slug, today)
        else:
            lastmod = today
        entries.append(
            SitemapEntry(f"{base}{route}", lastmod, change_frequency(route, listing_route))
        )
    return entries


def render_sitemap(entries: Iterable[SitemapEntry]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NS}">',
    ]
    for entry in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(entry.loc)}</loc>")
        lines.append(f"    <lastmod>{escape(entry.lastmod)}</lastmod>")
        lines.append(f"    <changefreq>{entry.changefreq}</changefreq>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
