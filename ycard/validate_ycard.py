"""yCard schema validation.

Rules, checked in this order; the first failure is the result:
  1. Document has a non-null "people" value          MISSING_PEOPLE_ARRAY
  2. "people" is a sequence                          PEOPLE_NOT_ARRAY
  3. For each person (1-based index, document order):
     a-d. uid, name, surname, email are non-blank    MISSING_FIELD
     e.   phone, if present, is a sequence           PHONE_NOT_ARRAY
     f.   address, if present, is not a sequence     ADDRESS_IS_ARRAY

The save path re-runs exactly these rules (see persist_ycard.py), so the
two paths always report the same violation for the same document.

Usage:
    result = validate_text(editor_text, log=activity_log)
    if result.ok:
        print(f"{result.count} people")
    else:
        print(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ycard.errors import ParseError
from ycard.parse_ycard import Shape, classify, field_shape, field_value, is_blank, parse

REQUIRED_FIELDS = ("uid", "name", "surname", "email")


class ViolationKind(str, Enum):
    MISSING_PEOPLE_ARRAY = "missing_people_array"
    PEOPLE_NOT_ARRAY = "people_not_array"
    MISSING_FIELD = "missing_field"
    PHONE_NOT_ARRAY = "phone_not_array"
    ADDRESS_IS_ARRAY = "address_is_array"


DOCUMENT_LEVEL_KINDS = {
    ViolationKind.MISSING_PEOPLE_ARRAY,
    ViolationKind.PEOPLE_NOT_ARRAY,
}


@dataclass(frozen=True)
class Valid:
    count: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """The first rule violation found in a document."""

    kind: ViolationKind
    index: int | None = None
    field: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        """Short form used in activity-log entries."""
        if self.kind is ViolationKind.MISSING_PEOPLE_ARRAY:
            return 'Missing "people" array'
        if self.kind is ViolationKind.PEOPLE_NOT_ARRAY:
            return '"people" must be an array'
        if self.kind is ViolationKind.MISSING_FIELD:
            return f'Person {self.index} missing "{self.field}"'
        if self.kind is ViolationKind.PHONE_NOT_ARRAY:
            return f'Person {self.index} "phone" must be an array'
        return f'Person {self.index} "address" should be an object'

    @property
    def detail(self) -> str:
        """Longer form used in user notifications."""
        if self.kind in DOCUMENT_LEVEL_KINDS:
            return self.message
        if self.kind is ViolationKind.MISSING_FIELD:
            return f'Person {self.index}: "{self.field}" is required'
        if self.kind is ViolationKind.PHONE_NOT_ARRAY:
            return f'Person {self.index}: "phone" must be an array'
        return f'Person {self.index}: "address" should be an object, not an array'


@dataclass(frozen=True)
class ParseFailure:
    """Result form of ParseError for callers that take results instead of exceptions."""

    message: str

    @property
    def ok(self) -> bool:
        return False


def check_person(person, index: int) -> Invalid | None:
    """Check one PersonRecord; ``index`` is 1-based."""
    for name in REQUIRED_FIELDS:
        if is_blank(field_value(person, name)):
            return Invalid(ViolationKind.MISSING_FIELD, index=index, field=name)

    if field_shape(person, "phone") not in (Shape.MISSING, Shape.SEQUENCE):
        return Invalid(ViolationKind.PHONE_NOT_ARRAY, index=index)

    if field_shape(person, "address") is Shape.SEQUENCE:
        return Invalid(ViolationKind.ADDRESS_IS_ARRAY, index=index)

    return None


def validate_document(document) -> Valid | Invalid:
    """Apply the rules to a parsed Document. Pure: no logging, no I/O."""
    # A root that is not a mapping (empty text, scalar, list) has no "people".
    people = field_value(document, "people")
    shape = classify(people)
    if shape is Shape.MISSING:
        return Invalid(ViolationKind.MISSING_PEOPLE_ARRAY)
    if shape is not Shape.SEQUENCE:
        return Invalid(ViolationKind.PEOPLE_NOT_ARRAY)

    for i, person in enumerate(people, 1):
        violation = check_person(person, i)
        if violation is not None:
            return violation

    return Valid(count=len(people))


def describe_validation(result: Valid | Invalid | ParseFailure) -> tuple[str, str]:
    """Activity-log (category, message) for a validation outcome."""
    if isinstance(result, Valid):
        return "success", f"Validation passed! Found {result.count} people"
    if isinstance(result, ParseFailure):
        return "error", f"YAML parse error: {result.message}"
    return "error", f"Validation failed: {result.message}"


def validate_text(text: str, log=None) -> Valid | Invalid | ParseFailure:
    """Parse then validate editor text.

    Appends exactly one entry to ``log`` (an ActivityLog) when one is given.
    Parsing gates validation: malformed text yields ParseFailure and no
    schema rule runs.
    """
    try:
        document = parse(text)
    except ParseError as e:
        result = ParseFailure(e.message)
    else:
        result = validate_document(document)

    if log is not None:
        log.append(*describe_validation(result))
    return result
