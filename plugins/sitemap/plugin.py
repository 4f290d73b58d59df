import json
from datetime import date
from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin
from mkdocs.utils import log

from plugins.doc_registry.errors import SitemapSourceError
from plugins.doc_registry.plugin import registry_for_build, resolve_project_path
from plugins.doc_registry.spec import DEFAULT_PRODUCTS, normalize_route_path
from plugins.llms_content.builder import (
    iter_bundle_routes,
    load_llms_config,
    parse_bundle_config,
)
from plugins.sitemap.routes import (
    DEFAULT_EXCLUDED_ROUTES,
    HIDDEN_ROUTE_PATTERNS,
    build_sitemap_entries,
    get_all_routes,
    get_docs_routes,
    read_route_manifest,
    render_sitemap,
)


class DocsSitemapPlugin(BasePlugin):
    """
    Writes sitemap.xml from the MkDocs pages, the docs registry routes,
    an optional route manifest and the LLM bundle routes.
    """

    config_scheme = (
        ("site_url", Type(str, default="")),
        ("docs_spec", Type(str, default="")),
        ("products", Type(list, default=list(DEFAULT_PRODUCTS))),
        ("llms_config", Type(str, default="")),
        ("route_manifest", Type(str, default="")),
        ("hidden_routes", Type(list, default=list(HIDDEN_ROUTE_PATTERNS))),
        ("exclude_routes", Type(list, default=list(DEFAULT_EXCLUDED_ROUTES))),
        ("include_hidden", Type(bool, default=False)),
        ("blog_index", Type(str, default="")),
        ("blog_route", Type(str, default="/blog")),
    )

    def __init__(self):
        super().__init__()
        self.page_routes = []

    def on_files(self, files, config, **kwargs):
        self.page_routes = sorted(
            {normalize_route_path("/" + f.url) for f in files.documentation_pages()}
        )
        log.debug(f"[docs_sitemap] collected {len(self.page_routes)} page routes")
        return files

    def collect_declared_routes(self, config) -> list:
        declared = list(self.page_routes)
        if self.config["route_manifest"]:
            manifest = resolve_project_path(config, self.config["route_manifest"])
            declared.extend(read_route_manifest(manifest, self.config["exclude_routes"]))
        return declared

    def collect_doc_routes(self, config) -> list:
        if not self.config["docs_spec"]:
            return []
        spec_path = resolve_project_path(config, self.config["docs_spec"])
        return get_docs_routes(
            registry_for_build(config, spec_path, self.config["products"])
        )

    def collect_bundle_routes(self, config) -> list:
        if not self.config["llms_config"]:
            return []
        llms_path = resolve_project_path(config, self.config["llms_config"])
        return list(iter_bundle_routes(parse_bundle_config(load_llms_config(llms_path))))

    def load_dated_items(self, config) -> list:
        if not self.config["blog_index"]:
            return []
        index_path = resolve_project_path(config, self.config["blog_index"])
        if not index_path.exists():
            log.warning(f"[docs_sitemap] blog index not found at {index_path}")
            return []
        try:
            with index_path.open("r", encoding="utf-8") as f:
                items = json.load(f)
        except json.JSONDecodeError as exc:
            raise SitemapSourceError(
                f"invalid JSON in blog index {index_path}: {exc}"
            ) from exc
        return items if isinstance(items, list) else []

    def on_post_build(self, config):
        site_url = self.config["site_url"] or config.get("site_url") or ""
        if not site_url:
            log.warning("[docs_sitemap] no site_url configured; using relative locations")

        bundle_routes = self.collect_bundle_routes(config)
        routes = get_all_routes(
            self.collect_declared_routes(config),
            self.collect_doc_routes(config),
            bundle_routes,
            include_hidden=self.config["include_hidden"],
            patterns=self.config["hidden_routes"],
            exclude=self.config["exclude_routes"],
        )
        entries = build_sitemap_entries(
            routes,
            bundle_routes,
            site_url,
            today=date.today().isoformat(),
            dated_items=self.load_dated_items(config),
            listing_route=self.config["blog_route"],
        )

        out_path = Path(config["site_dir"]).resolve() / "sitemap.xml"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(render_sitemap(entries), encoding="utf-8")
        log.info(f"[docs_sitemap] sitemap written to {out_path} ({len(entries)} urls)")
