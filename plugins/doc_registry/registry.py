"""
DocRegistry: read-only index over a validated docs spec.

Built once per spec; when the spec changes a new registry is built from
scratch. Callers hold the instance and pass it down explicitly.
"""

from typing import Dict, Iterable, List, Optional

from mkdocs.utils import log

from plugins.doc_registry.errors import RegistryConstructionError
from plugins.doc_registry.spec import (
    DEFAULT_PRODUCTS,
    DocInfo,
    FullDocsSpec,
    ProductSpec,
    get_docs_from_spec,
    normalize_route_path,
    process_section,
)
from plugins.doc_registry.validation import load_docs_spec


class DocRegistry:
    """
    Lookup service for document information.

    Provides O(1) access by content path and by route path (trailing
    slash insensitive) plus product and section queries.
    """

    def __init__(self, spec: FullDocsSpec):
        if not isinstance(spec, FullDocsSpec):
            raise RegistryConstructionError(
                "DocRegistry requires a validated FullDocsSpec, got "
                f"{type(spec).__name__}; run it through validate_docs_spec first"
            )

        all_docs = get_docs_from_spec(spec)
        path_to_doc: Dict[str, DocInfo] = {}
        route_to_doc: Dict[str, DocInfo] = {}
        for doc in all_docs:
            if doc.path in path_to_doc:
                raise RegistryConstructionError(f"duplicate content path '{doc.path}'")
            route = normalize_route_path(doc.route_path)
            if route in route_to_doc:
                raise RegistryConstructionError(f"duplicate route path '{route}'")
            path_to_doc[doc.path] = doc
            route_to_doc[route] = doc

        # Only assigned once everything above succeeded
        self._all_docs = all_docs
        self._path_to_doc = path_to_doc
        self._route_to_doc = route_to_doc
        self._products: Dict[str, ProductSpec] = {p.product: p for p in spec}

    def __len__(self) -> int:
        return len(self._all_docs)

    def __contains__(self, path: str) -> bool:
        return path in self._path_to_doc

    def get_all_docs(self) -> List[DocInfo]:
        """Return every document, in canonical order (a copy)."""
        return list(self._all_docs)

    def get_doc_info_by_path(self, path: str) -> Optional[DocInfo]:
        return self._path_to_doc.get(path)

    def get_doc_info_by_route_path(self, route_path: str) -> Optional[DocInfo]:
        return self._route_to_doc.get(normalize_route_path(route_path))

    def get_docs_by_product(self, product: str) -> List[DocInfo]:
        return [doc for doc in self._all_docs if doc.product == product]

    def get_product_spec(self, product: str) -> Optional[ProductSpec]:
        return self._products.get(product)

    def get_product_names(self) -> List[str]:
        return list(self._products.keys())

    def get_docs_in_section(self, product: str, section_slug: str) -> List[DocInfo]:
        """Re-derive a section's documents with the same rule as the full flattening."""
        product_spec = self._products.get(product)
        if product_spec is None:
            return []
        section = product_spec.get_section(section_slug)
        if section is None:
            return []
        return process_section(product, section)

    def get_docs_under(self, prefix: str) -> List[DocInfo]:
        """Documents whose content path is ``prefix`` or lies below it."""
        prefix = prefix.strip("/")
        if not prefix:
            return self.get_all_docs()
        return [
            doc
            for doc in self._all_docs
            if doc.path == prefix or doc.path.startswith(prefix + "/")
        ]


def load_doc_registry(spec_path, products: Iterable[str] = DEFAULT_PRODUCTS) -> DocRegistry:
    """Load, validate and index a JSON docs spec."""
    spec = load_docs_spec(spec_path, products)
    registry = DocRegistry(spec)
    log.info(
        f"[doc_registry] indexed {len(registry)} documents across "
        f"{len(registry.get_product_names())} products from {spec_path}"
    )
    return registry
