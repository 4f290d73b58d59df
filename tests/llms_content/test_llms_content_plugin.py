import json

from plugins.llms_content.plugin import LlmsContentPlugin


class TestLlmsContentPlugin:
    def test_post_build_writes_artifacts(
        self, tmp_path, raw_spec, content_dir, llms_config_file, caplog
    ):
        import logging

        caplog.set_level(logging.INFO)
        (tmp_path / "mkdocs.yml").write_text("site_name: Test\n", encoding="utf-8")
        (content_dir / "_meta.json").write_text(json.dumps(raw_spec), encoding="utf-8")

        plugin = LlmsContentPlugin()
        errors, _ = plugin.load_config(
            {
                "llms_config": "llms.yml",
                "docs_spec": "content/docs/_meta.json",
                "content_dir": "content/docs",
            }
        )
        assert errors == []

        site_dir = tmp_path / "site"
        plugin.on_post_build(
            {"config_file_path": str(tmp_path / "mkdocs.yml"), "site_dir": str(site_dir)}
        )

        full = (site_dir / "llms-full.txt").read_text(encoding="utf-8")
        assert "Page Title: Calls" in full
        assert "Page Title: Tracing" in full
        assert full.index("Page Title: Welcome") < full.index("Page Title: Calls")
        assert (site_dir / "static" / "content" / "docs" / "lilypad" / "llms-full.json").exists()
        assert "wrote 6 artifacts for 1 bundles" in caplog.text

    def test_no_bundles_configured(self, tmp_path, raw_spec, caplog):
        import logging

        caplog.set_level(logging.INFO)
        (tmp_path / "mkdocs.yml").write_text("site_name: Test\n", encoding="utf-8")
        (tmp_path / "_meta.json").write_text(json.dumps(raw_spec), encoding="utf-8")
        (tmp_path / "llms.yml").write_text("bundles: []\n", encoding="utf-8")

        plugin = LlmsContentPlugin()
        plugin.load_config({"llms_config": "llms.yml", "docs_spec": "_meta.json"})
        plugin.on_post_build(
            {"config_file_path": str(tmp_path / "mkdocs.yml"), "site_dir": str(tmp_path / "site")}
        )
        assert "no bundles configured" in caplog.text
        assert not (tmp_path / "site").exists()
