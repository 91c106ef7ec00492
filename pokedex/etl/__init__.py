"""ETL module: upstream creature API access and normalization."""

from pokedex.etl.base import (
    CategoryInfo,
    DataProvider,
    ItemDetail,
    ItemSummary,
    MemberRef,
    NotFound,
    PageResult,
    QueryResult,
    UpstreamError,
)
from pokedex.etl.hydration import CancellationToken, QueryCancelled
from pokedex.etl.pokeapi import PokeAPIProvider

__all__ = [
    "CancellationToken",
    "CategoryInfo",
    "DataProvider",
    "ItemDetail",
    "ItemSummary",
    "MemberRef",
    "NotFound",
    "PageResult",
    "PokeAPIProvider",
    "QueryCancelled",
    "QueryResult",
    "UpstreamError",
]
