from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin
from mkdocs.utils import log

from plugins.doc_registry.registry import DocRegistry, load_doc_registry
from plugins.doc_registry.spec import DEFAULT_PRODUCTS


def resolve_project_path(config, value: str) -> Path:
    """Resolve a plugin path option relative to the mkdocs.yml directory."""
    path = Path(value)
    if path.is_absolute():
        return path
    config_file = config.get("config_file_path") if config else None
    root = Path(config_file).resolve().parent if config_file else Path.cwd()
    return (root / path).resolve()


class DocRegistryPlugin(BasePlugin):
    """
    Builds the DocRegistry for the current build and exposes it to pages.

    A fresh registry is built in ``on_config``, which MkDocs runs again on
    every rebuild triggered by ``mkdocs serve``, so a spec change always
    produces a whole new index.
    """

    config_scheme = (
        ("docs_spec", Type(str, required=True)),
        ("products", Type(list, default=list(DEFAULT_PRODUCTS))),
    )

    def __init__(self):
        super().__init__()
        self.registry = None
        self.spec_path = None

    def on_config(self, config, **kwargs):
        self.spec_path = resolve_project_path(config, self.config["docs_spec"])
        # InvalidDocsSpecError is a PluginError; MkDocs aborts with its message
        self.registry = load_doc_registry(self.spec_path, self.config["products"])
        return config

    def on_serve(self, server, config, builder, **kwargs):
        if self.spec_path is not None:
            server.watch(str(self.spec_path))
        return server

    def on_page_context(self, context, page, config, nav, **kwargs):
        if self.registry is None:
            return context
        route = "/" + (page.url or "")
        doc_info = self.registry.get_doc_info_by_route_path(route)
        if doc_info is None:
            log.debug(f"[doc_registry] no registry entry for route {route}")
            return context
        page.meta.setdefault("doc_info", doc_info.to_dict())
        return context


def registry_for_build(config, spec_path: Path, products) -> DocRegistry:
    """
    Return the registry ``DocRegistryPlugin`` built for this spec in the
    current build, or load one when that plugin is not configured.

    A registry built with a different product set is not reused, so every
    plugin sees the products it was configured with.
    """
    plugins = (config.get("plugins") if config else None) or {}
    for plugin in plugins.values():
        if not isinstance(plugin, DocRegistryPlugin) or plugin.registry is None:
            continue
        if plugin.spec_path != Path(spec_path):
            continue
        if list(plugin.config["products"]) != list(products):
            log.warning(
                f"[doc_registry] products {list(products)} differ from the "
                f"doc_registry plugin's {list(plugin.config['products'])}; "
                f"loading {spec_path} again"
            )
            break
        log.debug(f"[doc_registry] reusing registry built for {spec_path}")
        return plugin.registry
    return load_doc_registry(spec_path, products)
