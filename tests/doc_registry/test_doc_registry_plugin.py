import json
from types import SimpleNamespace

import pytest

from plugins.doc_registry.errors import InvalidDocsSpecError
from plugins.doc_registry.plugin import (
    DocRegistryPlugin,
    registry_for_build,
    resolve_project_path,
)


@pytest.fixture
def project(tmp_path, raw_spec):
    (tmp_path / "mkdocs.yml").write_text("site_name: Test\n", encoding="utf-8")
    spec_file = tmp_path / "content" / "docs" / "_meta.json"
    spec_file.parent.mkdir(parents=True)
    spec_file.write_text(json.dumps(raw_spec), encoding="utf-8")
    return tmp_path


def make_plugin(options):
    plugin = DocRegistryPlugin()
    errors, warnings = plugin.load_config(options)
    assert errors == []
    return plugin


def mkdocs_config(project):
    return {"config_file_path": str(project / "mkdocs.yml")}


class TestDocRegistryPlugin:
    def test_resolve_project_path(self, project):
        config = mkdocs_config(project)
        assert resolve_project_path(config, "content/docs/_meta.json") == (
            project / "content" / "docs" / "_meta.json"
        ).resolve()
        absolute = project / "elsewhere.json"
        assert resolve_project_path(config, str(absolute)) == absolute

    def test_on_config_builds_registry(self, project):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        config = mkdocs_config(project)
        assert plugin.on_config(config) is config
        assert len(plugin.registry) == 8

    def test_on_config_rebuilds_from_scratch(self, project, raw_spec):
        """Each build re-reads the spec and replaces the registry wholesale."""
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        config = mkdocs_config(project)
        plugin.on_config(config)
        first = plugin.registry

        raw_spec[1]["sections"][0]["children"].append({"slug": "evals", "label": "Evals"})
        (project / "content" / "docs" / "_meta.json").write_text(
            json.dumps(raw_spec), encoding="utf-8"
        )
        plugin.on_config(config)
        assert plugin.registry is not first
        assert len(first) == 8
        assert len(plugin.registry) == 9

    def test_invalid_spec_stops_build(self, project):
        spec_file = project / "content" / "docs" / "_meta.json"
        spec_file.write_text(
            json.dumps(
                [
                    {
                        "product": "mirascope",
                        "sections": [
                            {
                                "slug": "index",
                                "label": "Docs",
                                "children": [
                                    {"slug": "a", "label": "A"},
                                    {"slug": "a", "label": "A"},
                                ],
                            }
                        ],
                    }
                ]
            ),
            encoding="utf-8",
        )
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        with pytest.raises(InvalidDocsSpecError):
            plugin.on_config(mkdocs_config(project))

    def test_on_serve_watches_spec(self, project):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        plugin.on_config(mkdocs_config(project))
        watched = []
        server = SimpleNamespace(watch=watched.append)
        assert plugin.on_serve(server, {}, None) is server
        assert watched == [str((project / "content" / "docs" / "_meta.json").resolve())]

    def test_page_context_attaches_doc_info(self, project):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        plugin.on_config(mkdocs_config(project))
        page = SimpleNamespace(url="docs/mirascope/calls/", meta={})
        context = {}
        assert plugin.on_page_context(context, page, {}, None) is context
        assert page.meta["doc_info"]["path"] == "mirascope/calls"

    def test_page_context_miss_is_ignored(self, project):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        plugin.on_config(mkdocs_config(project))
        page = SimpleNamespace(url="about/", meta={})
        plugin.on_page_context({}, page, {}, None)
        assert "doc_info" not in page.meta


class TestRegistryForBuild:
    def spec_path(self, project):
        return resolve_project_path(mkdocs_config(project), "content/docs/_meta.json")

    def test_reuses_doc_registry_plugin(self, project):
        """Other plugins share the registry built in on_config."""
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        config = dict(mkdocs_config(project), plugins={"doc_registry": plugin})
        plugin.on_config(config)
        registry = registry_for_build(config, self.spec_path(project), ["mirascope", "lilypad"])
        assert registry is plugin.registry

    def test_different_products_load_again(self, project, caplog):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        config = dict(mkdocs_config(project), plugins={"doc_registry": plugin})
        plugin.on_config(config)
        products = ["mirascope", "lilypad", "other"]
        registry = registry_for_build(config, self.spec_path(project), products)
        assert registry is not plugin.registry
        assert len(registry) == 8
        assert "differ from the doc_registry plugin's" in caplog.text

    def test_other_spec_not_reused(self, project, raw_spec):
        plugin = make_plugin({"docs_spec": "content/docs/_meta.json"})
        config = dict(mkdocs_config(project), plugins={"doc_registry": plugin})
        plugin.on_config(config)
        other = project / "other.json"
        other.write_text(json.dumps(raw_spec[:1]), encoding="utf-8")
        registry = registry_for_build(config, other.resolve(), ["mirascope", "lilypad"])
        assert registry is not plugin.registry
        assert registry.get_product_names() == ["mirascope"]

    def test_without_plugin_loads_spec(self, project):
        registry = registry_for_build(
            mkdocs_config(project), self.spec_path(project), ["mirascope", "lilypad"]
        )
        assert len(registry) == 8
