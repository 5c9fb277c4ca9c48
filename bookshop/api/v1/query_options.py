"""
Parsing of the OData-style system query options accepted by ``GET /Books``.

Supported subset:

    $select   title,author
    $filter   genre eq 'Fantasy' and price le 20 and contains(title,'Ring')
    $orderby  price desc,title
    $top      5
    $skip     10
    $search   tolkien
    $count    true

Field names are the external (camelCase) names; ``ID`` is accepted for
``id``. Anything outside the subset is reported as a ValidationError so the
caller gets a 400 naming the offending option.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Tuple
from uuid import UUID

from bookshop.domain.entities import TEXT_FIELDS
from bookshop.domain.errors import ValidationError
from bookshop.domain.value_objects import (
    BookFilter,
    COMPARISON_OPERATORS,
    ListOptions,
    Predicate,
    SortKey,
)
from bookshop.api.v1.converters import external_to_domain_field

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<string>'(?:[^']|'')*')
      | (?P<date>\d{4}-\d{2}-\d{2}(?![\d:T]))
      | (?P<number>-?\d+(?:\.\d+)?)
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<punct>[(),])
    )
    """,
    re.VERBOSE,
)

_UNSUPPORTED_KEYWORDS = {"or", "not", "has", "in", "any", "all"}

MAX_WINDOW = 2**63 - 1
"""Largest $top or $skip an SQLite LIMIT/OFFSET accepts"""


class _Token:
    __slots__ = ("kind", "text", "value")

    def __init__(self, kind: str, text: str, value: Any) -> None:
        self.kind = kind
        self.text = text
        self.value = value

    def __repr__(self) -> str:
        return f"_Token({self.kind}, {self.text!r})"


def _tokenize(expression: str) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    end = len(expression.rstrip())

    while pos < end:
        match = _TOKEN_RE.match(expression, pos)
        if match is None or match.end() == pos:
            raise ValidationError(
                f"Unexpected character in $filter at position {pos}: '{expression[pos:pos + 10]}'",
                field="$filter",
            )
        kind = match.lastgroup
        text = match.group(kind)

        if kind == "string":
            value: Any = text[1:-1].replace("''", "'")
        elif kind == "date":
            try:
                value = date.fromisoformat(text)
            except ValueError as e:
                raise ValidationError(f"Invalid date literal '{text}'", field="$filter") from e
        elif kind == "number":
            value = Decimal(text) if "." in text else int(text)
        else:
            value = text

        tokens.append(_Token(kind, text, value))
        pos = match.end()

    return tokens


def _coerce(field_name: str, value: Any) -> Any:
    """Check a literal against the type of the field it is compared with."""
    if value is None:
        return None

    if field_name in TEXT_FIELDS or field_name in ("created_by", "modified_by"):
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be compared with a string", field=field_name)
        return value

    if field_name == "id":
        try:
            return UUID(str(value))
        except ValueError as e:
            raise ValidationError(f"Invalid id literal '{value}'", field="id") from e

    if field_name == "stock":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("stock must be compared with an integer", field="stock")
        return value

    if field_name == "price":
        if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
            raise ValidationError("price must be compared with a number", field="price")
        return value

    if field_name == "published_at":
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError as e:
            raise ValidationError(f"Invalid date literal '{value}'", field=field_name) from e

    # created_at / modified_at compare against ISO text
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    raise ValidationError(f"{field_name} must be compared with a date or timestamp", field=field_name)


class _FilterParser:
    """Recursive descent over: expr := term ('and' term)*."""

    def __init__(self, expression: str) -> None:
        self._tokens = _tokenize(expression)
        self._pos = 0

    def parse(self) -> BookFilter:
        if not self._tokens:
            return BookFilter()
        predicates = self._expr()
        if self._pos != len(self._tokens):
            raise self._error(f"Unexpected '{self._tokens[self._pos].text}'")
        return BookFilter(tuple(predicates))

    def _error(self, message: str) -> ValidationError:
        return ValidationError(f"Invalid $filter: {message}", field="$filter")

    def _peek(self) -> Optional[_Token]:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of expression")
        self._pos += 1
        return token

    def _expect_punct(self, char: str) -> None:
        token = self._next()
        if token.kind != "punct" or token.text != char:
            raise self._error(f"expected '{char}', got '{token.text}'")

    def _expr(self) -> List[Predicate]:
        predicates = self._term()
        while True:
            token = self._peek()
            if token is None or token.kind != "name":
                return predicates
            keyword = token.text.lower()
            if keyword in _UNSUPPORTED_KEYWORDS:
                raise self._error(f"operator '{token.text}' is not supported")
            if keyword != "and":
                return predicates
            self._pos += 1
            predicates = predicates + self._term()

    def _term(self) -> List[Predicate]:
        token = self._next()

        if token.kind == "punct" and token.text == "(":
            predicates = self._expr()
            self._expect_punct(")")
            return predicates

        if token.kind != "name":
            raise self._error(f"expected a field name, got '{token.text}'")

        if token.text.lower() in _UNSUPPORTED_KEYWORDS:
            raise self._error(f"operator '{token.text}' is not supported")

        if token.text == "contains":
            return [self._contains()]

        field_name = self._field(token.text)
        operator = self._next()
        if operator.kind != "name" or operator.text.lower() not in COMPARISON_OPERATORS:
            raise self._error(f"unsupported operator '{operator.text}'")

        value = self._literal()
        return [Predicate(field_name, operator.text.lower(), _coerce(field_name, value))]

    def _contains(self) -> Predicate:
        self._expect_punct("(")
        name = self._next()
        if name.kind != "name":
            raise self._error("contains() expects a field name first")
        field_name = self._field(name.text)
        self._expect_punct(",")
        value = self._literal()
        self._expect_punct(")")
        return Predicate(field_name, "contains", value)

    def _field(self, name: str) -> str:
        return external_to_domain_field(name, option="$filter")

    def _literal(self) -> Any:
        token = self._next()
        if token.kind in ("string", "number", "date"):
            return token.value
        if token.kind == "name":
            lowered = token.text.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            if lowered == "null":
                return None
        raise self._error(f"expected a literal, got '{token.text}'")


def parse_filter(expression: Optional[str]) -> BookFilter:
    """Parse a ``$filter`` expression into a BookFilter."""
    if expression is None or not expression.strip():
        return BookFilter()
    return _FilterParser(expression).parse()


def parse_orderby(expression: Optional[str]) -> Tuple[SortKey, ...]:
    """Parse ``$orderby`` (``field [asc|desc], ...``)."""
    if expression is None or not expression.strip():
        return ()

    keys: List[SortKey] = []
    for part in expression.split(","):
        words = part.split()
        if not words or len(words) > 2:
            raise ValidationError(f"Invalid $orderby term '{part.strip()}'", field="$orderby")

        direction = words[1].lower() if len(words) == 2 else "asc"
        if direction not in ("asc", "desc"):
            raise ValidationError(f"Invalid sort direction '{words[1]}'", field="$orderby")

        field_name = external_to_domain_field(words[0], option="$orderby")
        keys.append(SortKey(field_name, descending=direction == "desc"))

    return tuple(keys)


def parse_select(expression: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Parse ``$select``; ``*`` or nothing selects all fields."""
    if expression is None or not expression.strip() or expression.strip() == "*":
        return None

    names = [name.strip() for name in expression.split(",")]
    if any(not name for name in names):
        raise ValidationError(f"Invalid $select '{expression}'", field="$select")
    return tuple(external_to_domain_field(name, option="$select") for name in names)


def parse_count(value: Optional[str]) -> bool:
    if value is None:
        return False
    lowered = value.strip().lower()
    if lowered not in ("true", "false"):
        raise ValidationError(f"$count must be true or false, got '{value}'", field="$count")
    return lowered == "true"


def parse_non_negative(value: Optional[str], option: str) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError as e:
        raise ValidationError(f"{option} must be an integer, got '{value}'", field=option) from e
    if number < 0:
        raise ValidationError(f"{option} must be >= 0, got {number}", field=option)
    if number > MAX_WINDOW:
        raise ValidationError(f"{option} must be <= {MAX_WINDOW}, got {number}", field=option)
    return number


def build_list_options(
    select: Optional[str] = None,
    filter: Optional[str] = None,
    orderby: Optional[str] = None,
    top: Optional[str] = None,
    skip: Optional[str] = None,
    search: Optional[str] = None,
    count: Optional[str] = None,
) -> ListOptions:
    """Turn raw ``$``-option strings into a domain ListOptions."""
    search_text = search.strip().strip('"') if search else None

    return ListOptions(
        select=parse_select(select),
        filter=parse_filter(filter),
        order_by=parse_orderby(orderby),
        top=parse_non_negative(top, "$top"),
        skip=parse_non_negative(skip, "$skip") or 0,
        search=search_text or None,
        count=parse_count(count),
    )
