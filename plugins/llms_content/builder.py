"""
Turns bundle definitions from the llms config file into LLMContent trees
and writes the JSON/TXT artifacts for them.

Config shape (YAML or JSON)::

    bundles:
      - slug: llms-full
        title: llms-full.txt
        description: Concatenated documentation.
        route: /llms-full
        children:
          - slug: mirascope
            title: Mirascope
            route: /docs/mirascope/llms-full
            include: mirascope
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

import yaml
from mkdocs.utils import log

from plugins.doc_registry.errors import LLMContentError
from plugins.doc_registry.registry import DocRegistry
from plugins.doc_registry.spec import normalize_route_path
from plugins.llms_content.llm_content import LLMContent, include_directory


@dataclass(frozen=True)
class BundleDefinition:
    slug: str
    title: str
    route: str
    description: str = ""
    include: Optional[str] = None
    children: Tuple["BundleDefinition", ...] = ()


def load_llms_config(path) -> dict:
    """Load the llms config (YAML or JSON) from disk."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"llms_config not found at {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise LLMContentError(f"unable to parse {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise LLMContentError(f"{config_path}: expected a mapping at the top level")
    log.debug(f"[llms_content] llms_config keys: {list(data.keys())}")
    return data


def parse_bundle_config(data: dict) -> List[BundleDefinition]:
    entries = data.get("bundles")
    if not isinstance(entries, list):
        raise LLMContentError("llms config: 'bundles' must be a list")
    definitions = [_parse_entry(entry, f"bundles[{i}]") for i, entry in enumerate(entries)]
    _check_unique_routes(definitions)
    return definitions


def _parse_entry(entry, where: str) -> BundleDefinition:
    if not isinstance(entry, dict):
        raise LLMContentError(f"{where}: expected a mapping")
    for key in ("slug", "title", "route"):
        if not isinstance(entry.get(key), str) or not entry[key].strip():
            raise LLMContentError(f"{where}: '{key}' must be a non-empty string")
    has_include = "include" in entry
    has_children = "children" in entry
    if has_include == has_children:
        raise LLMContentError(
            f"{where} ({entry['slug']}): exactly one of 'include' or 'children' is required"
        )
    children: Tuple[BundleDefinition, ...] = ()
    if has_children:
        raw_children = entry["children"]
        if not isinstance(raw_children, list):
            raise LLMContentError(f"{where}: 'children' must be a list")
        children = tuple(
            _parse_entry(child, f"{where}.children[{i}]")
            for i, child in enumerate(raw_children)
        )
    elif not isinstance(entry["include"], str):
        raise LLMContentError(f"{where}: 'include' must be a content path prefix")
    return BundleDefinition(
        slug=entry["slug"],
        title=entry["title"],
        route=normalize_route_path(entry["route"]),
        description=str(entry.get("description") or ""),
        include=entry.get("include"),
        children=children,
    )


def iter_definitions(definitions: Sequence[BundleDefinition]) -> Iterator[BundleDefinition]:
    for definition in definitions:
        yield definition
        yield from iter_definitions(definition.children)


def iter_bundle_routes(definitions: Sequence[BundleDefinition]) -> Iterator[str]:
    """Routes of every bundle (nested ones included), without loading content."""
    for definition in iter_definitions(definitions):
        yield definition.route


def _check_unique_routes(definitions: Sequence[BundleDefinition]) -> None:
    seen = set()
    for definition in iter_definitions(definitions):
        if definition.route in seen:
            raise LLMContentError(f"duplicate bundle route '{definition.route}'")
        seen.add(definition.route)


async def build_bundle(
    definition: BundleDefinition, registry: DocRegistry, loader
) -> LLMContent:
    if definition.include is not None:
        return await include_directory(
            registry,
            definition.include,
            loader,
            slug=definition.slug,
            title=definition.title,
            description=definition.description,
            route=definition.route,
        )
    children = await asyncio.gather(
        *(build_bundle(child, registry, loader) for child in definition.children)
    )
    return LLMContent.from_children(
        slug=definition.slug,
        title=definition.title,
        children=children,
        description=definition.description,
        route=definition.route,
    )


def build_bundles(
    definitions: Sequence[BundleDefinition], registry: DocRegistry, loader
) -> List[LLMContent]:
    async def _build_all():
        return [await build_bundle(d, registry, loader) for d in definitions]

    return asyncio.run(_build_all())


def write_bundle_artifacts(
    bundle: LLMContent, site_dir: Path, json_root: str = "static/content"
) -> List[Path]:
    """
    Write ``<json_root><route>.json`` and ``<route>.txt`` for the bundle and
    every nested bundle. The .txt is exactly the concatenation held in the JSON.
    """
    site_dir = Path(site_dir)
    json_base = site_dir / json_root.strip("/")
    written: List[Path] = []
    for node in bundle.iter_bundles():
        route = node.route.strip("/") or node.slug
        json_path = json_base / f"{route}.json"
        txt_path = site_dir / f"{route}.txt"
        json_path.parent.mkdir(parents=True, exist_ok=True)
        txt_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(
            json.dumps(node.to_json(), ensure_ascii=False, indent=2), encoding="utf-8"
        )
        txt_path.write_text(node.to_text(), encoding="utf-8")
        log.info(
            f"[llms_content] wrote {txt_path} (tokens={node.token_estimate})"
        )
        written.extend([json_path, txt_path])
    return written
