"""wv - Werkverzeichnis catalog tools.

Catalog number sorting, attribution merging, and an index with a query
builder over a directory of JSON composition documents.
"""

__version__ = "0.1.0"

from .catalog import SortValue, inclusive_ceiling, looks_like_group, matches_group, sort_key, sort_numbers
from .definitions import DefinitionCache, load_catalog_def
from .exceptions import ConfigurationError, DocumentError, InvalidIdError, WvError
from .index import Index, build_index, get_or_build_index, load_index, save_index
from .merge import MergedAttribution, merge_attribution, merge_attribution_with_collections
from .query import QueryBuilder, QueryResult
from .xref import MappingLookup, XrefLookup, XrefResult, XrefStats, check_duplicates, lookup_batch

__all__ = [
    "__version__",
    "ConfigurationError",
    "DefinitionCache",
    "DocumentError",
    "Index",
    "InvalidIdError",
    "MappingLookup",
    "MergedAttribution",
    "QueryBuilder",
    "QueryResult",
    "SortValue",
    "WvError",
    "XrefLookup",
    "XrefResult",
    "XrefStats",
    "build_index",
    "check_duplicates",
    "get_or_build_index",
    "inclusive_ceiling",
    "load_catalog_def",
    "load_index",
    "looks_like_group",
    "lookup_batch",
    "matches_group",
    "merge_attribution",
    "merge_attribution_with_collections",
    "save_index",
    "sort_key",
    "sort_numbers",
]
