"""Data transfer objects and the abstract creature data provider."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

_TRAILING_ID_RE = re.compile(r"/(\d+)/$")


class UpstreamError(RuntimeError):
    """Raised when an upstream request fails (non-2xx, transport error, malformed payload)."""

    def __init__(self, reason: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.reason = reason
        self.status_code = status_code
        self.url = url
        status = status_code if status_code is not None else "n/a"
        super().__init__(f"Upstream error (status={status}): {reason}")


class NotFound(UpstreamError):
    """Upstream has no resource for the requested name or id (HTTP 404)."""


def extract_id_from_url(url: str) -> int:
    """Parse the numeric id from a resource URL ending in '/<id>/'; 0 if absent."""
    match = _TRAILING_ID_RE.search(url or "")
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class MemberRef:
    """Lightweight reference to a creature (name + detail URL), not hydrated."""

    name: str
    url: str

    @property
    def item_id(self) -> int:
        return extract_id_from_url(self.url)


@dataclass(frozen=True)
class ItemSummary:
    """Normalized creature shape rendered by list/search/filter views."""

    id: int
    name: str
    sprite_url: str
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class Ability:
    name: str
    is_hidden: bool


@dataclass(frozen=True)
class Stat:
    name: str
    base_stat: int


@dataclass(frozen=True)
class ItemDetail:
    """
    Full creature detail.

    height/weight stay in upstream units (decimetres/hectograms);
    height_m and weight_kg divide by 10 for display.
    """

    id: int
    name: str
    sprite_url: str
    categories: tuple[str, ...]
    height: int
    weight: int
    base_experience: int
    abilities: tuple[Ability, ...] = ()
    stats: tuple[Stat, ...] = ()

    @property
    def height_m(self) -> float:
        return self.height / 10

    @property
    def weight_kg(self) -> float:
        return self.weight / 10

    @property
    def stat_total(self) -> int:
        return sum(s.base_stat for s in self.stats)

    def summary(self) -> ItemSummary:
        return ItemSummary(
            id=self.id,
            name=self.name,
            sprite_url=self.sprite_url,
            categories=self.categories,
        )


@dataclass(frozen=True)
class CategoryInfo:
    """A category (type) and its member references in upstream order."""

    name: str
    member_refs: tuple[MemberRef, ...] = ()

    @property
    def member_count(self) -> int:
        return len(self.member_refs)


@dataclass(frozen=True)
class ListPage:
    """Raw list call result: references plus upstream pagination markers."""

    refs: tuple[MemberRef, ...]
    total: int
    next_url: Optional[str] = None
    previous_url: Optional[str] = None


@dataclass(frozen=True)
class PageResult:
    """Hydrated page for the browse view."""

    items: tuple[ItemSummary, ...]
    total: int
    has_next: bool
    has_previous: bool
    next_offset: Optional[int] = None
    previous_offset: Optional[int] = None


@dataclass(frozen=True)
class QueryResult:
    """
    Shared shape of search / filter / combined queries.

    count is exact for type filters and approximate for search paths.
    """

    results: tuple[ItemSummary, ...] = field(default_factory=tuple)
    count: int = 0
    has_more: bool = False


class DataProvider(ABC):
    """Abstract base class for creature data providers."""

    @abstractmethod
    async def list_refs(self, limit: int, offset: int = 0) -> ListPage:
        """
        Fetch one page of creature references.

        Args:
            limit: Page size.
            offset: Index of the first reference.

        Returns:
            ListPage with references in upstream order.
        """
        pass

    @abstractmethod
    async def fetch_detail(self, name_or_id: "str | int") -> ItemDetail:
        """
        Fetch a single creature by name or numeric id.

        Raises:
            UpstreamError: non-success status, transport failure or
                malformed payload (NotFound for 404).
        """
        pass

    @abstractmethod
    async def fetch_category(self, name: str) -> CategoryInfo:
        """Fetch a category (type) with its member references."""
        pass

    @abstractmethod
    async def fetch_categories(self) -> list[str]:
        """Fetch the names of all categories."""
        pass

    async def fetch_summary(self, name_or_id: "str | int") -> ItemSummary:
        """Hydrate a reference to its summary shape (one detail call)."""
        detail = await self.fetch_detail(name_or_id)
        return detail.summary()

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
