"""Query engines layered on the creature provider: search, type filter, combined."""

from pokedex.query.combined import Combinator
from pokedex.query.search import SearchEngine
from pokedex.query.service import QueryService
from pokedex.query.type_filter import TypeFilterEngine

__all__ = [
    "Combinator",
    "QueryService",
    "SearchEngine",
    "TypeFilterEngine",
]
