"""
LLMContent: immutable tree of concatenated documentation text.

Leaves carry text; parents carry an ordered tuple of children and their
text is the concatenation of the children's text in that order. Size
metrics are always computed on the final text of a node, never summed
over children, so token boundaries across documents are counted right.
"""

import re
from typing import Iterator, List, Optional, Sequence, Tuple

from plugins.doc_registry.errors import LLMContentError
from plugins.doc_registry.registry import DocRegistry
from plugins.doc_registry.spec import DocInfo
from plugins.llms_content.loader import LoadedDocument, load_documents

TOKEN_ESTIMATOR = "heuristic-v1"


def word_count(content: str) -> int:
    return len(re.findall(r"\b\w+\b", content, flags=re.UNICODE))


def estimate_tokens(content: str) -> int:
    return len(re.findall(r"\w+|[^\s\w]", content, flags=re.UNICODE))


class LLMContent:
    __slots__ = (
        "slug",
        "title",
        "description",
        "route",
        "_content",
        "_children",
        "_token_estimate",
        "_word_count",
    )

    def __init__(
        self,
        slug: str,
        title: str,
        description: str = "",
        route: str = "",
        content: Optional[str] = None,
        children: Optional[Sequence["LLMContent"]] = None,
    ):
        if (content is None) == (children is None):
            raise LLMContentError(
                f"LLMContent '{slug}' needs exactly one of content or children"
            )
        self.slug = slug
        self.title = title
        self.description = description or ""
        self.route = route or ""
        if children is not None:
            self._children: Optional[Tuple["LLMContent", ...]] = tuple(children)
            self._content = "".join(child.get_content() for child in self._children)
        else:
            self._children = None
            self._content = content
        self._token_estimate = estimate_tokens(self._content)
        self._word_count = word_count(self._content)

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError(f"LLMContent is immutable; cannot reassign '{name}'")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        kind = "leaf" if self.is_leaf else f"{len(self._children)} children"
        return f"LLMContent(slug={self.slug!r}, route={self.route!r}, {kind})"

    # ----- Constructors -------

    @classmethod
    def from_raw_content(
        cls, slug: str, title: str, content: str, description: str = "", route: str = ""
    ) -> "LLMContent":
        return cls(slug, title, description, route, content=content)

    @classmethod
    def from_children(
        cls,
        slug: str,
        title: str,
        children: Sequence["LLMContent"],
        description: str = "",
        route: str = "",
    ) -> "LLMContent":
        return cls(slug, title, description, route, children=children)

    @classmethod
    def from_document(cls, doc_info: DocInfo, document: LoadedDocument) -> "LLMContent":
        """Leaf for one document: a page header block followed by its body."""
        title = document.title or doc_info.label
        lines = [
            "---",
            f"Page Title: {title}",
            "",
            f"- Route: {doc_info.route_path}",
        ]
        if document.description:
            lines.append(f"- Summary: {document.description}")
        lines.append("")
        lines.append(document.body.strip())
        text = "\n".join(lines) + "\n\n"
        return cls(
            slug=doc_info.slug,
            title=title,
            description=document.description,
            route=doc_info.route_path,
            content=text,
        )

    # ----- Accessors -------

    @property
    def is_leaf(self) -> bool:
        return self._children is None

    @property
    def children(self) -> Tuple["LLMContent", ...]:
        return self._children or ()

    @property
    def token_estimate(self) -> int:
        return self._token_estimate

    @property
    def word_count(self) -> int:
        return self._word_count

    def get_content(self) -> str:
        return self._content

    def to_text(self) -> str:
        return self._content

    def iter_leaves(self) -> Iterator["LLMContent"]:
        if self.is_leaf:
            yield self
            return
        for child in self._children:
            yield from child.iter_leaves()

    def iter_bundles(self) -> Iterator["LLMContent"]:
        """This node and every nested node that has children, depth first."""
        if self.is_leaf:
            return
        yield self
        for child in self._children:
            yield from child.iter_bundles()

    def find(self, slug: str) -> Optional["LLMContent"]:
        if self.slug == slug:
            return self
        for child in self.children:
            found = child.find(slug)
            if found is not None:
                return found
        return None

    # ----- Serialization -------

    def to_json(self) -> dict:
        data = {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "route": self.route,
            "token_estimate": self._token_estimate,
            "word_count": self._word_count,
        }
        if self.is_leaf:
            data["content"] = self._content
        else:
            data["children"] = [child.to_json() for child in self._children]
        return data

    @classmethod
    def from_json(cls, data: dict) -> "LLMContent":
        if not isinstance(data, dict) or "slug" not in data:
            raise LLMContentError("LLMContent JSON must be an object with a 'slug'")
        common = {
            "slug": data["slug"],
            "title": data.get("title", ""),
            "description": data.get("description", ""),
            "route": data.get("route", ""),
        }
        if "children" in data:
            return cls(**common, children=[cls.from_json(c) for c in data["children"]])
        if "content" in data:
            return cls(**common, content=data["content"])
        raise LLMContentError(f"LLMContent '{data['slug']}' has neither content nor children")


async def include_directory(
    registry: DocRegistry,
    prefix: str,
    loader,
    *,
    slug: str,
    title: str,
    description: str = "",
    route: str = "",
) -> LLMContent:
    """
    Bundle every registry document under ``prefix``.

    Documents are taken in registry order, loaded concurrently and
    reassembled in that order. Any load failure aborts the whole bundle.
    """
    docs: List[DocInfo] = registry.get_docs_under(prefix)
    if not docs:
        raise LLMContentError(f"bundle '{slug}': no documents under '{prefix}'")
    documents = await load_documents(loader, [doc.path for doc in docs])
    children = [
        LLMContent.from_document(doc, document) for doc, document in zip(docs, documents)
    ]
    return LLMContent.from_children(
        slug=slug, title=title, children=children, description=description, route=route
    )
