import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import yaml
from mkdocs.utils import log

from plugins.doc_registry.errors import ContentLoadError

FM_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)


def split_front_matter(source_text: str) -> Tuple[dict, str]:
    """
    Return (front_matter_dict, body_text). If no FM, dict={} and body=source_text.
    """
    m = FM_PATTERN.match(source_text)
    if not m:
        return {}, source_text
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as exc:
        log.warning(f"[llms_content] unable to parse front matter: {exc}")
        fm = {}
    if not isinstance(fm, dict):
        fm = {}
    return fm, source_text[m.end() :]


@dataclass(frozen=True)
class LoadedDocument:
    path: str
    body: str
    meta: Dict = field(default_factory=dict, compare=False)

    @property
    def title(self) -> str:
        return str(self.meta.get("title") or "")

    @property
    def description(self) -> str:
        # prefer description; fallback to summary if authors used that
        value = self.meta.get("description") or self.meta.get("summary") or ""
        return str(value)


class FileContentLoader:
    """Loads document bodies from ``<content_dir>/<path><ext>``."""

    def __init__(self, content_dir, extensions: Sequence[str] = (".mdx", ".md")):
        self.content_dir = Path(content_dir).resolve()
        self.extensions = tuple(extensions)

    def resolve_file(self, path: str) -> Path:
        relative = path.strip("/")
        for ext in self.extensions:
            candidate = (self.content_dir / (relative + ext)).resolve()
            # Ensure the resolved file is still within the content directory
            try:
                candidate.relative_to(self.content_dir)
            except ValueError:
                raise ContentLoadError(path, "path escapes the content directory") from None
            if candidate.is_file():
                return candidate
        tried = ", ".join(Path(relative).name + ext for ext in self.extensions)
        raise ContentLoadError(path, f"no file found (tried {tried})")

    def read(self, path: str) -> LoadedDocument:
        file_path = self.resolve_file(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ContentLoadError(path, str(exc)) from exc
        meta, body = split_front_matter(text)
        log.debug(f"[llms_content] loaded {file_path}")
        return LoadedDocument(path=path, body=body, meta=meta)

    async def load(self, path: str) -> LoadedDocument:
        return await asyncio.to_thread(self.read, path)

    async def load_body(self, path: str) -> str:
        document = await self.load(path)
        return document.body


async def load_documents(loader, paths: Sequence[str]) -> List[LoadedDocument]:
    """
    Load documents concurrently and return them in the order of ``paths``.

    A failure cancels the loads still in flight and is re-raised, so callers
    never see a partial result.
    """
    tasks = [asyncio.ensure_future(loader.load(path)) for path in paths]
    try:
        # gather keeps the input order regardless of completion order
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
