"""Schema Package - Cached JSON Schema Loading and Validation.

This package provides the SchemaStore, which keeps a single JSON schema in a
file cache, downloads it from the canonical source only when the cache
cannot be loaded, and validates JSON documents against it.

Usage Patterns:
    # Validate a parsed document:
    from schema import SchemaStore
    store = SchemaStore()
    errors = store.validate({"name": "a"})

    # Validate a file:
    errors = store.validate_from_source("document.json")

    # Build from config.yml:
    from config import load_config
    store = SchemaStore.from_config(load_config())

Error Handling:
    Failing to obtain the schema raises SchemaUnavailableError. A document
    that does not conform is not an error: validate() returns a non-empty
    list of ValidationErrorRecord instead.
"""
from .schema import (
    SCHEMA_CACHE_KEY,
    DocumentNotFoundError,
    DocumentParseError,
    SchemaAlreadyExistsError,
    SchemaCompileError,
    SchemaNetworkError,
    SchemaNotFoundError,
    SchemaParseError,
    SchemaStore,
    SchemaStoreError,
    SchemaUnavailableError,
    SchemaWriteError,
    ValidationErrorRecord,
    read_document,
)

__all__ = [
    "SCHEMA_CACHE_KEY",
    "DocumentNotFoundError",
    "DocumentParseError",
    "SchemaAlreadyExistsError",
    "SchemaCompileError",
    "SchemaNetworkError",
    "SchemaNotFoundError",
    "SchemaParseError",
    "SchemaStore",
    "SchemaStoreError",
    "SchemaUnavailableError",
    "SchemaWriteError",
    "ValidationErrorRecord",
    "read_document",
]
