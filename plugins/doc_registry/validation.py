import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from mkdocs.utils import log

from plugins.doc_registry.errors import InvalidDocsSpecError
from plugins.doc_registry.spec import (
    DEFAULT_PRODUCTS,
    INDEX_SLUG,
    DocSpec,
    FullDocsSpec,
    ProductSpec,
    SectionSpec,
    get_docs_from_spec,
    normalize_route_path,
)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    spec: Optional[FullDocsSpec] = None


def validate_docs_spec(
    raw: Any, products: Iterable[str] = DEFAULT_PRODUCTS
) -> ValidationResult:
    """
    Check a parsed (but untrusted) docs spec and convert it to typed form.

    Data problems are collected as human readable messages; nothing is
    raised for them. Passing a still-serialized document is a usage error.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        raise TypeError(
            "validate_docs_spec expects parsed JSON data, not a serialized document"
        )

    allowed = tuple(products)
    errors: List[str] = []

    if not isinstance(raw, list):
        errors.append(f"spec: expected a list of products, got {type(raw).__name__}")
        return ValidationResult(is_valid=False, errors=errors)

    product_specs: List[ProductSpec] = []
    seen_products = set()
    for idx, item in enumerate(raw):
        where = f"products[{idx}]"
        if not isinstance(item, dict):
            errors.append(f"{where}: expected an object")
            continue
        name = item.get("product")
        if not isinstance(name, str) or name not in allowed:
            errors.append(
                f"{where}: unknown product {name!r} (expected one of {', '.join(allowed)})"
            )
            continue
        if name in seen_products:
            errors.append(f"{name}: duplicate product")
            continue
        seen_products.add(name)
        _check_weight(item, name, errors)

        sections = item.get("sections")
        if not isinstance(sections, list):
            errors.append(f"{name}: 'sections' must be a list")
            continue

        section_specs = []
        for s_idx, section in enumerate(sections):
            parsed = _parse_section(section, f"{name} > sections[{s_idx}]", errors)
            if parsed is not None:
                section_specs.append(parsed)
        _check_unique_slugs(section_specs, name, errors)

        product_specs.append(
            ProductSpec(
                product=name,
                sections=tuple(section_specs),
                weight=item.get("weight"),
            )
        )

    if errors:
        return ValidationResult(is_valid=False, errors=errors)

    spec = FullDocsSpec(products=tuple(product_specs))
    errors.extend(_check_collisions(spec))
    if errors:
        return ValidationResult(is_valid=False, errors=errors)
    return ValidationResult(is_valid=True, spec=spec)


def parse_and_validate_docs_spec(
    raw: Any, products: Iterable[str] = DEFAULT_PRODUCTS, source: Optional[str] = None
) -> FullDocsSpec:
    result = validate_docs_spec(raw, products)
    if not result.is_valid:
        raise InvalidDocsSpecError(result.errors, source=source)
    return result.spec


def load_docs_spec(path, products: Iterable[str] = DEFAULT_PRODUCTS) -> FullDocsSpec:
    """Read a JSON docs spec from disk and validate it."""
    spec_path = Path(path)
    if not spec_path.exists():
        raise InvalidDocsSpecError(["file not found"], source=str(spec_path))
    try:
        with spec_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidDocsSpecError([f"invalid JSON: {exc}"], source=str(spec_path))
    log.debug(f"[doc_registry] loaded docs spec from {spec_path}")
    return parse_and_validate_docs_spec(data, products, source=str(spec_path))


# ----- Helper functions -------


def _check_weight(node: dict, where: str, errors: List[str]) -> None:
    if "weight" not in node or node["weight"] is None:
        return
    weight = node["weight"]
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        errors.append(f"{where}: weight must be a number")
    elif not math.isfinite(weight) or weight < 0:
        errors.append(f"{where}: weight must be a finite, non-negative number")


def _check_node_fields(node: Any, where: str, errors: List[str]) -> Optional[str]:
    """Validate slug/label/weight; return the slug when the node is usable."""
    if not isinstance(node, dict):
        errors.append(f"{where}: expected an object")
        return None
    slug = node.get("slug")
    if not isinstance(slug, str) or not slug.strip():
        errors.append(f"{where}: 'slug' must be a non-empty string")
        return None
    if "/" in slug:
        errors.append(f"{where}: slug {slug!r} must not contain '/'")
        return None
    if slug in (".", ".."):
        errors.append(f"{where}: slug {slug!r} is not a valid path segment")
        return None
    if slug != slug.strip():
        errors.append(f"{where}: slug {slug!r} must not have surrounding whitespace")
        return None
    if not isinstance(node.get("label"), str):
        errors.append(f"{where}: 'label' must be a string")
        return None
    _check_weight(node, where, errors)
    return slug


def _parse_section(node: Any, where: str, errors: List[str]) -> Optional[SectionSpec]:
    slug = _check_node_fields(node, where, errors)
    if slug is None:
        return None
    where = where.rsplit(" > ", 1)[0] + f" > {slug}"
    children = node.get("children")
    if not isinstance(children, list):
        errors.append(f"{where}: 'children' must be a list")
        return None
    docs = _parse_children(children, where, errors)
    return SectionSpec(
        slug=slug, label=node["label"], children=docs, weight=node.get("weight")
    )


def _parse_doc(node: Any, where: str, errors: List[str]) -> Optional[DocSpec]:
    slug = _check_node_fields(node, where, errors)
    if slug is None:
        return None
    where = where.rsplit(" > ", 1)[0] + f" > {slug}"
    children = node.get("children")
    if children is None:
        return DocSpec(slug=slug, label=node["label"], weight=node.get("weight"))
    if not isinstance(children, list):
        errors.append(f"{where}: 'children' must be a list when present")
        return None
    if slug == INDEX_SLUG:
        errors.append(f"{where}: the reserved '{INDEX_SLUG}' slug cannot have children")
        return None
    return DocSpec(
        slug=slug,
        label=node["label"],
        children=_parse_children(children, where, errors),
        weight=node.get("weight"),
    )


def _parse_children(children: list, where: str, errors: List[str]) -> Tuple[DocSpec, ...]:
    docs = []
    for idx, child in enumerate(children):
        parsed = _parse_doc(child, f"{where} > children[{idx}]", errors)
        if parsed is not None:
            docs.append(parsed)
    _check_unique_slugs(docs, where, errors)
    return tuple(docs)


def _check_unique_slugs(nodes, where: str, errors: List[str]) -> None:
    seen = set()
    for node in nodes:
        if node.slug in seen:
            errors.append(f"{where} > {node.slug}: duplicate slug '{node.slug}'")
        seen.add(node.slug)


def _check_collisions(spec: FullDocsSpec) -> List[str]:
    errors = []
    paths = {}
    routes = {}
    for doc in get_docs_from_spec(spec):
        if doc.path in paths:
            errors.append(f"{doc.path}: path collides with another document")
        paths[doc.path] = doc
        route = normalize_route_path(doc.route_path)
        other = routes.get(route)
        if other is not None:
            errors.append(
                f"{doc.path}: route '{route}' collides with '{other.path}'"
            )
        routes[route] = doc
    return errors
