"""yCard document parsing and shape normalization.

parse() turns editor text into the plain value PyYAML builds (the
Document). The validation rules never inspect those values directly:
classify() maps each one to one of four shapes first, so every rule works
on a known shape.

  MISSING   key absent, or YAML null
  SCALAR    str, int, float, bool, date/datetime, bytes
  SEQUENCE  list
  MAPPING   dict (and !!set, which YAML defines as a mapping)
"""

from __future__ import annotations

import base64
import datetime
from enum import Enum
from pathlib import Path

import yaml

from ycard.errors import ParseError

NESTING_TOO_DEEP = "document nesting too deep"


class Shape(str, Enum):
    MISSING = "missing"
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def parse(text: str):
    """Parse editor text into a Document.

    Raises ParseError carrying PyYAML's diagnostic verbatim. Empty text
    parses to None; rejecting that is the validator's job.
    """
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseError(str(e)) from e
    except RecursionError as e:
        # PyYAML's composer recurses once per nesting level
        raise ParseError(NESTING_TOO_DEEP) from e


def read_document_text(path) -> str:
    return Path(path).read_text(encoding="utf-8")


# ─── Shape classification ──────────────────────────────────────────────────

def classify(value) -> Shape:
    if value is None:
        return Shape.MISSING
    if isinstance(value, (dict, set, frozenset)):
        return Shape.MAPPING
    if isinstance(value, (list, tuple)):
        return Shape.SEQUENCE
    return Shape.SCALAR


def field_value(record, name: str):
    """Value of ``name`` in a record; None when the record is not a mapping."""
    if isinstance(record, dict):
        return record.get(name)
    return None


def field_shape(record, name: str) -> Shape:
    return classify(field_value(record, name))


def scalar_text(value) -> str:
    """Text form of a scalar, as it would read in the document."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


def is_blank(value) -> bool:
    """True unless ``value`` is a scalar with visible text.

    A sequence or mapping where a string belongs counts as blank.
    """
    if classify(value) is not Shape.SCALAR:
        return True
    return scalar_text(value).strip() == ""
