"""
Typed model of the hierarchical docs specification and the flattening
of that tree into resolved DocInfo records.

A spec is a list of products; each product holds sections, each section
holds DocSpec nodes. A DocSpec with children is a group: it contributes
a path segment but is not itself addressable (its landing page, if any,
is an ``index`` child). A DocSpec without children is a document.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

# Reserved slug for landing content (section level and document level)
INDEX_SLUG = "index"

# Every document route lives under this prefix
ROUTE_ROOT = "/docs"

DEFAULT_PRODUCTS: Tuple[str, ...] = ("mirascope", "lilypad")


@dataclass(frozen=True)
class DocSpec:
    slug: str
    label: str
    children: Optional[Tuple["DocSpec", ...]] = None
    weight: Optional[float] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None


@dataclass(frozen=True)
class SectionSpec:
    slug: str
    label: str
    children: Tuple[DocSpec, ...] = ()
    weight: Optional[float] = None

    @property
    def is_default(self) -> bool:
        """The ``index`` section holds the product's own top-level pages."""
        return self.slug == INDEX_SLUG


@dataclass(frozen=True)
class ProductSpec:
    product: str
    sections: Tuple[SectionSpec, ...] = ()
    weight: Optional[float] = None

    def get_section(self, slug: str) -> Optional[SectionSpec]:
        for section in self.sections:
            if section.slug == slug:
                return section
        return None


@dataclass(frozen=True)
class FullDocsSpec:
    """Root of the docs index. Instances come out of the validator."""

    products: Tuple[ProductSpec, ...] = ()

    def __iter__(self):
        return iter(self.products)

    def __len__(self) -> int:
        return len(self.products)


@dataclass(frozen=True)
class DocInfo:
    label: str
    slug: str
    product: str
    path: str
    route_path: str
    weight: float
    section: SectionSpec = field(compare=False, repr=False)

    @property
    def section_slug(self) -> str:
        return self.section.slug

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "slug": self.slug,
            "product": self.product,
            "path": self.path,
            "route_path": self.route_path,
            "weight": self.weight,
            "section": self.section.slug,
        }


T = TypeVar("T", DocSpec, SectionSpec, ProductSpec)


def resolve_weights(items: Iterable[T]) -> List[Tuple[float, T]]:
    """
    Pair siblings with their resolved weight and return them in canonical order.

    An explicit weight is used as-is; a missing one falls back to the item's
    position among its siblings. The sort is stable, so equal weights keep
    declaration order.
    """
    weighted = [
        (item.weight if item.weight is not None else float(position), item)
        for position, item in enumerate(items)
    ]
    return sorted(weighted, key=lambda pair: pair[0])


def normalize_route_path(route: str) -> str:
    """
    Canonical form of a route: leading slash, no trailing slash (except root).

    Applied both when routes are indexed and when they are looked up, so
    '/docs/x' and '/docs/x/' always resolve to the same record.
    """
    route = "/" + route.strip().lstrip("/")
    if route != "/":
        route = route.rstrip("/") or "/"
    return route


def to_route_path(path: str) -> str:
    """Map a content-relative path onto its public route."""
    path = path.strip("/")
    return f"{ROUTE_ROOT}/{path}" if path else ROUTE_ROOT


def section_path_prefix(product: str, section_slug: str) -> str:
    if section_slug == INDEX_SLUG:
        return product
    return f"{product}/{section_slug}"


def process_doc_spec(
    doc_spec: DocSpec,
    product: str,
    path_prefix: str,
    section: SectionSpec,
    weight: Optional[float] = None,
) -> List[DocInfo]:
    """Flatten a single DocSpec node (depth first) into DocInfo records."""
    if weight is None:
        weight = doc_spec.weight if doc_spec.weight is not None else 0.0
    path = f"{path_prefix}/{doc_spec.slug}"

    if doc_spec.is_leaf:
        # index documents are served at their parent's route
        if doc_spec.slug == INDEX_SLUG:
            route_path = to_route_path(path_prefix)
        else:
            route_path = to_route_path(path)
        return [
            DocInfo(
                label=doc_spec.label,
                slug=doc_spec.slug,
                product=product,
                path=path,
                route_path=route_path,
                weight=weight,
                section=section,
            )
        ]

    result: List[DocInfo] = []
    for child_weight, child in resolve_weights(doc_spec.children):
        result.extend(process_doc_spec(child, product, path, section, child_weight))
    return result


def process_section(product: str, section: SectionSpec) -> List[DocInfo]:
    prefix = section_path_prefix(product, section.slug)
    result: List[DocInfo] = []
    for weight, doc_spec in resolve_weights(section.children):
        result.extend(process_doc_spec(doc_spec, product, prefix, section, weight))
    return result


def get_docs_from_spec(spec: Sequence[ProductSpec]) -> List[DocInfo]:
    """Flatten a full spec into the ordered list of DocInfo records."""
    docs: List[DocInfo] = []
    for _, product_spec in resolve_weights(spec):
        for _, section in resolve_weights(product_spec.sections):
            docs.extend(process_section(product_spec.product, section))
    return docs
