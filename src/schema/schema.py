"""
Lazily-Fetched JSON Schema Store.

This module owns the single validation schema used to check JSON documents.
The schema lives in a file cache ("schema.json" inside the cache directory)
and is downloaded from the canonical remote source only when the cache
cannot be loaded.

Lifecycle:
    A SchemaStore starts empty. The first successful load() (directly or via
    ensure()) stores the parsed schema in memory; after that the in-memory
    copy is returned for the lifetime of the instance and is never refreshed.
    fetch() only touches the file cache, never the in-memory copy.

Load-or-fetch:
    ensure() reads the cache first and falls back to fetch() + load() exactly
    once. fetch() refuses to overwrite an existing cache file, so a corrupt
    cached schema is reported as SchemaUnavailableError rather than replaced.
    Remove the file (CacheLocation.remove or `ibis-validate --clear-cache`)
    to force a fresh download.

Validation:
    validate() compiles the schema on every call using the dialect named by
    its "$schema" keyword (latest draft when absent) and returns a list of
    ValidationErrorRecord. An empty list means the document conforms.
    Non-conformance is a normal result, never an exception.

Error Handling:
    All failures derive from SchemaStoreError and chain the underlying cause:
    - SchemaNotFoundError: cache file cannot be opened or read
    - SchemaParseError: cache file is not valid UTF-8 JSON
    - SchemaAlreadyExistsError: fetch() found an existing cache file
    - SchemaNetworkError: remote source failed
    - SchemaWriteError: downloaded schema could not be persisted
    - SchemaUnavailableError: ensure() failed on both paths
    - SchemaCompileError: the schema is not itself a valid JSON Schema
    - DocumentNotFoundError / DocumentParseError: validate_from_source() input
"""
import copy
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union, IO

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.validators import validator_for

from cache import CacheLocation
from remote import RemoteSource, RemoteSourceError


logger = logging.getLogger(__name__)

SCHEMA_CACHE_KEY = "schema.json"


class SchemaStoreError(Exception):
    """Base class for schema store failures."""
    pass


class SchemaNotFoundError(SchemaStoreError):
    """Raised when the cached schema file cannot be opened or read."""
    pass


class SchemaParseError(SchemaStoreError):
    """Raised when content is not a well-formed JSON document."""
    pass


class SchemaAlreadyExistsError(SchemaStoreError):
    """Raised when fetch() would overwrite an existing cache file."""
    pass


class SchemaNetworkError(SchemaStoreError):
    """Raised when the schema cannot be downloaded."""
    pass


class SchemaWriteError(SchemaStoreError):
    """Raised when the downloaded schema cannot be written to the cache."""
    pass


class SchemaCompileError(SchemaStoreError):
    """Raised when the schema document is not a valid JSON Schema."""
    pass


class SchemaUnavailableError(SchemaStoreError):
    """Raised when ensure() could neither load nor fetch-and-load the schema.

    Attributes:
        load_error: Failure of the initial load from the cache
        fallback_error: Failure of the fetch, or of the load after fetching
    """

    def __init__(self, load_error: SchemaStoreError, fallback_error: SchemaStoreError):
        self.load_error = load_error
        self.fallback_error = fallback_error
        super().__init__(
            f"Schema unavailable: load failed ({load_error}); "
            f"fallback failed ({fallback_error})"
        )


class DocumentNotFoundError(SchemaNotFoundError):
    """Raised when a document to validate cannot be opened or read."""
    pass


class DocumentParseError(SchemaParseError):
    """Raised when a document to validate is not well-formed JSON."""
    pass


@dataclass(frozen=True)
class ValidationErrorRecord:
    """A single reason a document does not conform to the schema.

    Attributes:
        path: JSON Pointer to the offending value ("" is the document root)
        message: Human-readable reason reported by the validator
        keyword: Failing schema keyword (e.g. "required", "type")
        schema_path: JSON Pointer to the failing keyword inside the schema
    """
    path: str
    message: str
    keyword: str = ""
    schema_path: str = ""

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "ValidationErrorRecord":
        return cls(
            path=json_pointer(error.absolute_path),
            message=error.message,
            keyword=str(error.validator),
            schema_path=json_pointer(error.absolute_schema_path),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "path": self.path,
            "message": self.message,
            "keyword": self.keyword,
            "schema_path": self.schema_path,
        }


def json_pointer(parts: Iterable[Union[str, int]]) -> str:
    """Render a path as an RFC 6901 JSON Pointer."""
    return "".join(
        "/" + str(part).replace("~", "~0").replace("/", "~1") for part in parts
    )


def _document_order(error: ValidationError) -> Tuple[Tuple[int, int, str], ...]:
    # Array indices compare numerically, object keys as text
    return tuple(
        (0, part, "") if isinstance(part, int) else (1, 0, str(part))
        for part in error.absolute_path
    )


class SchemaStore:
    """Cached, lazily-fetched JSON schema used to validate documents.

    Not safe for concurrent use; callers sharing an instance across threads
    must serialize access themselves.

    Attributes:
        cache_location: Where the schema file is read from and written to
        remote_source: Where the schema is downloaded from when not cached

    Example:
        >>> store = SchemaStore()
        >>> errors = store.validate({"name": "a"})
        >>> if errors:
        ...     for error in errors:
        ...         print(error.path, error.message)
    """

    def __init__(
        self,
        cache_location: Optional[CacheLocation] = None,
        remote_source: Optional[RemoteSource] = None,
    ):
        self.cache_location = cache_location or CacheLocation()
        self.remote_source = remote_source or RemoteSource()
        self._cached: Optional[Any] = None
        self._loaded = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SchemaStore":
        """Create a SchemaStore from configuration dictionary.

        Example:
            >>> from config import load_config
            >>> store = SchemaStore.from_config(load_config())
        """
        schema_settings = config.get("schema") or {}
        return cls(
            cache_location=CacheLocation(schema_settings.get("cache_dir")),
            remote_source=RemoteSource.from_config(config),
        )

    def get(self) -> Optional[Any]:
        """Return a copy of the in-memory schema, or None if not loaded yet.

        Never touches the filesystem or the network.
        """
        if not self._loaded:
            return None
        return copy.deepcopy(self._cached)

    def load(self) -> Any:
        """Return the schema, reading it from the cache file on first use.

        Returns:
            A copy of the parsed schema document

        Raises:
            SchemaNotFoundError: If the cache file cannot be opened or read
            SchemaParseError: If the cache file is not valid UTF-8 JSON
        """
        if self._loaded:
            logger.debug("Using in-memory schema")
            return copy.deepcopy(self._cached)

        try:
            path = self.cache_location.get_path(SCHEMA_CACHE_KEY)
        except (OSError, ValueError) as e:
            raise SchemaNotFoundError(f"Could not resolve path to {SCHEMA_CACHE_KEY}: {e}") from e

        try:
            f = self.cache_location.open_file(SCHEMA_CACHE_KEY)
        except OSError as e:
            raise SchemaNotFoundError(f"Could not open {path}: {e}") from e

        with f:
            try:
                raw = f.read()
            except OSError as e:
                raise SchemaNotFoundError(f"Could not read {path}: {e}") from e

        try:
            document = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            # Covers both UnicodeDecodeError and json.JSONDecodeError
            raise SchemaParseError(f"Failed to parse {path}: {e}") from e

        self._cached = document
        self._loaded = True
        logger.info(f"Loaded schema from {path}")
        return copy.deepcopy(document)

    def fetch(self) -> None:
        """Download the schema and write it verbatim to the cache file.

        Does nothing to the in-memory schema; call load() afterwards.

        Raises:
            SchemaAlreadyExistsError: If the cache file already exists. The
                existing file is left untouched.
            SchemaNetworkError: If the download fails
            SchemaWriteError: If the cache file cannot be created or written
        """
        try:
            path = self.cache_location.get_path(SCHEMA_CACHE_KEY)
        except (OSError, ValueError) as e:
            raise SchemaWriteError(f"Could not resolve path to {SCHEMA_CACHE_KEY}: {e}") from e

        try:
            exists = self.cache_location.exists(SCHEMA_CACHE_KEY)
        except OSError as e:
            raise SchemaWriteError(f"Could not check for existing {path}: {e}") from e

        if exists:
            raise SchemaAlreadyExistsError(
                f"Tried to download {SCHEMA_CACHE_KEY} but {path} already exists"
            )

        logger.info(f"Could not find {SCHEMA_CACHE_KEY} in cache folder, downloading from {self.remote_source.url}")
        try:
            text = self.remote_source.fetch_text()
        except RemoteSourceError as e:
            raise SchemaNetworkError(f"Could not download schema: {e}") from e

        try:
            out = self.cache_location.create_file(SCHEMA_CACHE_KEY)
        except FileExistsError as e:
            raise SchemaWriteError(f"Could not create {path}: file appeared during download") from e
        except OSError as e:
            raise SchemaWriteError(f"Could not create {path}: {e}") from e

        try:
            with out:
                out.write(text.encode("utf-8"))
        except OSError as e:
            self._discard_partial(path)
            raise SchemaWriteError(f"Could not write {path}: {e}") from e

        logger.info(f"Downloaded {SCHEMA_CACHE_KEY} to {path}")

    def ensure(self) -> Any:
        """Return the schema, downloading it only if it cannot be loaded.

        Tries load(); on failure runs fetch() then load() once.

        Raises:
            SchemaUnavailableError: If the fallback fetch or the second load
                fails. Carries both the original and the fallback error.
        """
        try:
            return self.load()
        except SchemaStoreError as load_error:
            logger.warning(f"Could not load cached schema, trying download: {load_error}")
            first_error = load_error

        try:
            self.fetch()
        except SchemaStoreError as fetch_error:
            raise SchemaUnavailableError(first_error, fetch_error) from fetch_error

        try:
            return self.load()
        except SchemaStoreError as reload_error:
            raise SchemaUnavailableError(first_error, reload_error) from reload_error

    def validate(self, document: Any) -> List[ValidationErrorRecord]:
        """Validate a parsed JSON document against the schema.

        Args:
            document: Parsed JSON value (dict, list or scalar)

        Returns:
            Validation errors ordered by document path; empty if the document
            conforms

        Raises:
            SchemaUnavailableError: If the schema cannot be obtained
            SchemaCompileError: If the schema is not a valid JSON Schema
        """
        schema = self.ensure()
        validator = _compile(schema)
        errors = [
            ValidationErrorRecord.from_validation_error(e)
            for e in sorted(validator.iter_errors(document), key=_document_order)
        ]
        logger.debug(f"Validation finished with {len(errors)} error(s)")
        return errors

    def validate_from_source(self, source: Union[str, "os.PathLike[str]", IO[Any]]) -> List[ValidationErrorRecord]:
        """Read a JSON document from a path or file object and validate it.

        Args:
            source: Filesystem path, or a binary or text file-like object

        Raises:
            DocumentNotFoundError: If the document cannot be opened or read
            DocumentParseError: If the document is not well-formed JSON
            SchemaUnavailableError: If the schema cannot be obtained
            SchemaCompileError: If the schema is not a valid JSON Schema
        """
        document = read_document(source)
        return self.validate(document)

    @staticmethod
    def _discard_partial(path: "os.PathLike[str]") -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Could not remove partially written {path}: {e}")


def read_document(source: Union[str, "os.PathLike[str]", IO[Any]]) -> Any:
    """Parse a JSON document from a path or an open file object."""
    if isinstance(source, (str, os.PathLike)):
        try:
            f = open(source, "rb")
        except OSError as e:
            raise DocumentNotFoundError(f"Could not open file to validate: {e}") from e
        with f:
            return read_document(f)

    name = getattr(source, "name", "<stream>")
    try:
        raw = source.read()
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"Could not decode {name}: {e}") from e
    except OSError as e:
        raise DocumentNotFoundError(f"Could not read {name}: {e}") from e

    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except ValueError as e:
        raise DocumentParseError(f"Could not parse {name}: {e}") from e


def _compile(schema: Any) -> Any:
    """Build a validator for the schema's declared dialect."""
    if not isinstance(schema, (dict, bool)):
        raise SchemaCompileError(
            f"Schema must be a JSON object or boolean, got {type(schema).__name__}"
        )

    validator_class = validator_for(schema, default=Draft202012Validator)
    try:
        validator_class.check_schema(schema)
    except SchemaError as e:
        raise SchemaCompileError(f"Invalid schema: {e.message}") from e
    return validator_class(schema)
