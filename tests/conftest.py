import copy

import pytest

from plugins.doc_registry.registry import DocRegistry
from plugins.doc_registry.validation import parse_and_validate_docs_spec

SAMPLE_SPEC = [
    {
        "product": "mirascope",
        "sections": [
            {
                "slug": "index",
                "label": "Docs",
                "children": [
                    {"slug": "index", "label": "Mirascope V2"},
                    {"slug": "calls", "label": "Calls"},
                    {"slug": "streams", "label": "Streams"},
                    {
                        "slug": "guides",
                        "label": "Guides",
                        "children": [
                            {"slug": "index", "label": "Guides"},
                            {"slug": "agents", "label": "Agents"},
                        ],
                    },
                ],
            },
            {
                "slug": "api",
                "label": "API Reference",
                "children": [
                    {"slug": "index", "label": "API"},
                    {"slug": "llm", "label": "LLM"},
                ],
            },
        ],
    },
    {
        "product": "lilypad",
        "sections": [
            {
                "slug": "index",
                "label": "Docs",
                "children": [{"slug": "tracing", "label": "Tracing"}],
            }
        ],
    },
]

SAMPLE_BODIES = {
    "mirascope/index": "---\ntitle: Welcome\ndescription: Start here.\n---\n# Welcome\n\nIntro text.\n",
    "mirascope/calls": "# Calls\n\nMake a call.\n",
    "mirascope/streams": "# Streams\n\nStream a response.\n",
    "mirascope/guides/index": "# Guides\n",
    "mirascope/guides/agents": "# Agents\n\nBuild an agent.\n",
    "mirascope/api/index": "# API\n",
    "mirascope/api/llm": "# llm\n\nThe llm module.\n",
    "lilypad/tracing": "# Tracing\n\nTrace your calls.\n",
}


@pytest.fixture
def raw_spec():
    return copy.deepcopy(SAMPLE_SPEC)


@pytest.fixture
def registry(raw_spec):
    return DocRegistry(parse_and_validate_docs_spec(raw_spec))


@pytest.fixture
def content_dir(tmp_path):
    """A content directory holding one .mdx file per sample document."""
    root = tmp_path / "content" / "docs"
    for path, body in SAMPLE_BODIES.items():
        file_path = root / f"{path}.mdx"
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(body, encoding="utf-8")
    return root


LLMS_CONFIG = """
bundles:
  - slug: llms-full
    title: llms-full.txt
    description: Concatenated documentation.
    route: /llms-full/
    children:
      - slug: mirascope
        title: Mirascope
        description: LLM abstractions.
        route: /docs/mirascope/llms-full
        include: mirascope
      - slug: lilypad
        title: Lilypad
        route: /docs/lilypad/llms-full
        include: lilypad
"""


@pytest.fixture
def llms_config_file(tmp_path):
    config_file = tmp_path / "llms.yml"
    config_file.write_text(LLMS_CONFIG, encoding="utf-8")
    return config_file
