"""Persistence of validated yCard documents.

One record under one fixed key. A save always re-validates, then replaces
the stored value in full; nothing is merged and no history is kept. A
rejected or failed save leaves the previous value as it was.

Backends implement the durable key-value store:
  get_item(key) -> str | None
  set_item(key, text)           raises StorageWriteError on failure
  label                         human-readable location, used in messages
"""

from __future__ import annotations

import base64
import datetime
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import jsonschema

from ycard.errors import (
    CorruptRecordError,
    ParseError,
    RecursiveDocumentError,
    StorageReadError,
    StorageWriteError,
)
from ycard.parse_ycard import NESTING_TOO_DEEP, parse
from ycard.validate_ycard import Invalid, ParseFailure, validate_document

logger = logging.getLogger(__name__)

# ─── Constants ──────────────────────────────────────────────────────────────

STORAGE_KEY = "ycard-data"
STORE_VERSION = "ycard_kv_store_v0.1"

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
DOCUMENT_SCHEMA_FILE = "ycard_document_schema_v0.1.json"
KV_STORE_SCHEMA_FILE = "kv_store_schema_v0.1.json"


def load_schema(name: str) -> dict:
    with open(SCHEMA_DIR / name, encoding="utf-8") as f:
        return json.load(f)


# ─── Canonicalization ───────────────────────────────────────────────────────

RECURSIVE_ALIAS = "document contains a recursive alias"


def canonical_value(value, _path=None):
    """Convert a parsed YAML value into plain JSON types, keeping its structure.

    Raises RecursiveDocumentError when a container holds itself, which YAML
    aliases allow. A container reached twice through sibling aliases is fine.
    """
    if isinstance(value, (dict, list, tuple)):
        path = _path if _path is not None else set()
        if id(value) in path:
            raise RecursiveDocumentError(RECURSIVE_ALIAS)
        path.add(id(value))
        try:
            if isinstance(value, dict):
                return {_canonical_key(k): canonical_value(v, path) for k, v in value.items()}
            return [canonical_value(v, path) for v in value]
        finally:
            path.discard(id(value))
    if isinstance(value, (set, frozenset)):
        # YAML !!set is a mapping whose values are all null
        return {_canonical_key(k): None for k in value}
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def _canonical_key(key):
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)) or key is None:
        # json.dumps renders these itself (1 -> "1", None -> "null")
        return key
    return str(canonical_value(key))


def canonicalize(document) -> str:
    return json.dumps(canonical_value(document), ensure_ascii=False, indent=2)


# ─── Backends ───────────────────────────────────────────────────────────────

class MemoryBackend:
    """In-process store. ``fail_writes`` makes every write fail with that reason."""

    label = "memory"

    def __init__(self, items: dict | None = None, fail_writes: str | None = None):
        self.items: dict[str, str] = dict(items or {})
        self.fail_writes = fail_writes

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, text: str) -> None:
        if self.fail_writes:
            raise StorageWriteError(self.fail_writes)
        self.items[key] = text


class JsonFileBackend:
    """Key-value store kept in one JSON file, replaced atomically on every write."""

    def __init__(self, path):
        self.path = Path(path)

    @property
    def label(self) -> str:
        return str(self.path)

    def read_items(self) -> dict[str, str]:
        """All stored items. A missing file is an empty store."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageReadError(f"Cannot read store {self.path}: {e}") from e
        try:
            jsonschema.validate(data, load_schema(KV_STORE_SCHEMA_FILE))
        except jsonschema.ValidationError as e:
            raise StorageReadError(f"Store {self.path} is malformed: {e.message}") from e
        return data["items"]

    def get_item(self, key: str) -> str | None:
        return self.read_items().get(key)

    def set_item(self, key: str, text: str) -> None:
        try:
            items = self.read_items()
        except StorageReadError as e:
            raise StorageWriteError(str(e)) from e
        items[key] = text
        payload = {"store_version": STORE_VERSION, "items": items}
        try:
            self._write_atomic(payload)
        except OSError as e:
            raise StorageWriteError(f"Cannot write store {self.path}: {e}") from e
        logger.debug("Wrote key %s to %s (%d chars)", key, self.path, len(text))

    def _write_atomic(self, payload: dict) -> None:
        # Write to temp file, then rename
        dir_path = self.path.parent
        dir_path.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(dir_path), suffix=".json.tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.write("\n")
            os.replace(tmp_path, str(self.path))
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass  # cleanup failure should not mask the original exception
            raise


# ─── Save results ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Saved:
    count: int
    key: str
    location: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class SaveRejected:
    """Internal validation failed; nothing was written."""

    violation: Invalid

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class SaveFailed:
    """Serialization or the backend write failed; the previous value is unchanged."""

    reason: str

    @property
    def ok(self) -> bool:
        return False


def describe_save(result) -> tuple[str, str]:
    """Activity-log (category, message) for a save outcome."""
    if isinstance(result, Saved):
        return "success", f"Saved {result.count} people to {result.location}"
    if isinstance(result, SaveRejected):
        return "error", f"Save failed: {result.violation.message}"
    if isinstance(result, SaveFailed):
        return "error", f"Save failed: {result.reason}"
    return "error", f"Save failed: {result.message}"


# ─── Store ──────────────────────────────────────────────────────────────────

class PersistenceStore:
    def __init__(self, backend, key: str = STORAGE_KEY, log=None):
        self.backend = backend
        self.key = key
        self.log = log

    def save(self, document) -> Saved | SaveRejected | SaveFailed:
        """Validate, canonicalize and overwrite the stored record."""
        verdict = validate_document(document)
        if not verdict.ok:
            return self._finish(SaveRejected(verdict))

        try:
            text = canonicalize(document)
        except RecursiveDocumentError as e:
            logger.warning("Refusing to save %s: %s", self.key, e)
            return self._finish(SaveFailed(str(e)))
        except RecursionError:
            logger.warning("Refusing to save %s: %s", self.key, NESTING_TOO_DEEP)
            return self._finish(SaveFailed(NESTING_TOO_DEEP))

        try:
            self.backend.set_item(self.key, text)
        except StorageWriteError as e:
            logger.warning("Write of %s to %s failed: %s", self.key, self.backend.label, e.reason)
            return self._finish(SaveFailed(e.reason))

        return self._finish(Saved(count=verdict.count, key=self.key, location=self.backend.label))

    def save_text(self, text: str) -> Saved | SaveRejected | SaveFailed | ParseFailure:
        """Parse editor text, then save it. Malformed text writes nothing."""
        try:
            document = parse(text)
        except ParseError as e:
            return self._finish(ParseFailure(e.message))
        return self.save(document)

    def load(self):
        """The last saved Document, or None if nothing was saved under the key.

        Raises CorruptRecordError if the stored value is not a valid
        canonical yCard document.
        """
        text = self.backend.get_item(self.key)
        if text is None:
            return None
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(f"Record '{self.key}' is not valid JSON: {e}") from e
        try:
            jsonschema.validate(document, load_schema(DOCUMENT_SCHEMA_FILE))
        except jsonschema.ValidationError as e:
            raise CorruptRecordError(f"Record '{self.key}' fails the yCard schema: {e.message}") from e
        return document

    def _finish(self, result):
        if self.log is not None:
            self.log.append(*describe_save(result))
        return result
