"""Static report structure definitions: balance sheet tree and GuV positions."""

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from bilanz.domain.errors import ConfigurationError


@dataclass(frozen=True)
class SectionNode:
    """Node of the balance sheet tree, identified by its dotted RSID."""

    rsid: str
    title: str
    children: tuple["SectionNode", ...] = ()

    @property
    def key(self) -> str:
        return self.rsid.rsplit(".", 1)[-1]

    @property
    def level(self) -> int:
        return self.rsid.count(".")

    def walk(self) -> Iterator["SectionNode"]:
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, rsid: str) -> Optional["SectionNode"]:
        for node in self.walk():
            if node.rsid == rsid:
                return node
        return None

    def nearest(self, cid: str) -> Optional["SectionNode"]:
        """Return the deepest node on the path of ``cid``."""
        if cid != self.rsid and not cid.startswith(self.rsid + "."):
            return None
        for child in self.children:
            found = child.nearest(cid)
            if found is not None:
                return found
        return self


@dataclass(frozen=True)
class GuVSectionDefinition:
    """One HGB §275(2) position of the GuV."""

    key: str
    title: str
    cid: str
    kind: str

    @property
    def is_revenue(self) -> bool:
        return self.kind == "revenue"


def build_tree(definition: Mapping[str, Any], parent_rsid: Optional[str] = None) -> SectionNode:
    """Build a SectionNode tree from nested ``{id, title, children}`` mappings."""
    try:
        local_id = definition["id"]
        title = definition["title"]
    except KeyError as exc:
        raise ConfigurationError(f"Balance sheet node is missing {exc}") from exc
    rsid = local_id if parent_rsid is None else f"{parent_rsid}.{local_id}"
    children = tuple(build_tree(child, rsid) for child in definition.get("children", ()))
    keys = [child.key for child in children]
    if len(keys) != len(set(keys)):
        raise ConfigurationError(f"Duplicate child ids under '{rsid}'")
    return SectionNode(rsid=rsid, title=title, children=children)


def build_guv_sections(rows) -> tuple[GuVSectionDefinition, ...]:
    sections = []
    for row in rows:
        kind = row.get("kind")
        if kind not in ("revenue", "expense"):
            raise ConfigurationError(f"GuV section '{row.get('key')}' has invalid kind '{kind}'")
        sections.append(
            GuVSectionDefinition(key=row["key"], title=row["title"], cid=row["cid"], kind=kind)
        )
    keys = [s.key for s in sections]
    if len(keys) != len(set(keys)):
        raise ConfigurationError("Duplicate GuV section keys")
    return tuple(sections)
