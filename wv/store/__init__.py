"""Document store: JSON records under a data root."""

from .loader import (
    CATALOGS_DIR,
    COLLECTIONS_DIR,
    COMPOSERS_DIR,
    COMPOSITIONS_DIR,
    INDEXES_DIR,
    collection_path_from_id,
    extract_id_from_path,
    is_composition_id,
    iter_composition_files,
    load_collection,
    load_composer,
    load_composition,
    load_json,
    path_for_id,
)
from .parser import parse_catalog_definition

__all__ = [
    "CATALOGS_DIR",
    "COLLECTIONS_DIR",
    "COMPOSERS_DIR",
    "COMPOSITIONS_DIR",
    "INDEXES_DIR",
    "collection_path_from_id",
    "extract_id_from_path",
    "is_composition_id",
    "iter_composition_files",
    "load_collection",
    "load_composer",
    "load_composition",
    "load_json",
    "parse_catalog_definition",
    "path_for_id",
]
