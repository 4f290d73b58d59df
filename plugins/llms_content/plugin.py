from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin
from mkdocs.utils import log

from plugins.doc_registry.plugin import registry_for_build, resolve_project_path
from plugins.doc_registry.spec import DEFAULT_PRODUCTS
from plugins.llms_content.builder import (
    build_bundles,
    load_llms_config,
    parse_bundle_config,
    write_bundle_artifacts,
)
from plugins.llms_content.loader import FileContentLoader


class LlmsContentPlugin(BasePlugin):
    """Compiles the configured LLM bundles into JSON and TXT artifacts."""

    config_scheme = (
        ("llms_config", Type(str, required=True)),
        ("docs_spec", Type(str, required=True)),
        ("content_dir", Type(str, default="content/docs")),
        ("products", Type(list, default=list(DEFAULT_PRODUCTS))),
        ("json_root", Type(str, default="static/content")),
    )

    # Process will start after site build is complete
    def on_post_build(self, config):
        spec_path = resolve_project_path(config, self.config["docs_spec"])
        registry = registry_for_build(config, spec_path, self.config["products"])

        llms_config_path = resolve_project_path(config, self.config["llms_config"])
        definitions = parse_bundle_config(load_llms_config(llms_config_path))
        if not definitions:
            log.info("[llms_content] no bundles configured; skipping")
            return

        loader = FileContentLoader(resolve_project_path(config, self.config["content_dir"]))
        bundles = build_bundles(definitions, registry, loader)

        site_dir = Path(config["site_dir"]).resolve()
        written = []
        for bundle in bundles:
            written.extend(
                write_bundle_artifacts(bundle, site_dir, self.config["json_root"])
            )
        log.info(
            f"[llms_content] wrote {len(written)} artifacts for {len(bundles)} bundles"
        )
