"""Field-level validation for catalog records.

The checks run at service entry and return every violation at once, so the
API can report all problems with a payload in a single response.
"""
from collections.abc import Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from musicstore.core.exceptions import FieldViolation, ValidationError
from musicstore.models.music import (
    ALBUM_MAX_LENGTH,
    CATEGORY_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    GENRE_MAX_LENGTH,
    NAME_MAX_LENGTH,
)
from musicstore.models.review import COMMENT_MAX_LENGTH

# Fields an artist may set on create or change on update.
EDITABLE_FIELDS = (
    "name",
    "description",
    "price",
    "category",
    "genre",
    "album_name",
    "release_year",
)

# Matches the Numeric(10, 2) price column.
PRICE_STEP = Decimal("0.01")
MAX_PRICE = Decimal("99999999.99")

MIN_RELEASE_YEAR = 1900
MIN_RATING = 1
MAX_RATING = 5


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _check_length(violations: list[FieldViolation], fields: Mapping, name: str, limit: int, label: str) -> None:
    value = fields.get(name)
    if isinstance(value, str) and len(value) > limit:
        violations.append(FieldViolation(name, f"{label} cannot exceed {limit} characters"))


def validate_music_fields(fields: Mapping[str, Any], *, partial: bool = False) -> list[FieldViolation]:
    """Return the violations in ``fields``.

    With ``partial=True`` (updates) only the keys present are checked, but a
    present required key must still be non-blank.
    """
    violations: list[FieldViolation] = []

    def required(name: str) -> bool:
        return not partial or name in fields

    if required("name") and _is_blank(fields.get("name")):
        violations.append(FieldViolation("name", "Music name is required"))
    _check_length(violations, fields, "name", NAME_MAX_LENGTH, "Music name")

    if required("category") and _is_blank(fields.get("category")):
        violations.append(FieldViolation("category", "Category is required"))
    _check_length(violations, fields, "category", CATEGORY_MAX_LENGTH, "Category")

    if required("price"):
        raw_price = fields.get("price")
        if raw_price is None:
            violations.append(FieldViolation("price", "Price is required"))
        else:
            price = _to_decimal(raw_price)
            if price is None:
                violations.append(FieldViolation("price", "Price must be a number"))
            elif price <= 0:
                violations.append(FieldViolation("price", "Price must be positive"))
            elif price > MAX_PRICE:
                violations.append(FieldViolation("price", f"Price cannot exceed {MAX_PRICE}"))
            elif price.quantize(PRICE_STEP) != price:
                violations.append(FieldViolation("price", "Price cannot have more than 2 decimal places"))

    _check_length(violations, fields, "description", DESCRIPTION_MAX_LENGTH, "Description")
    _check_length(violations, fields, "genre", GENRE_MAX_LENGTH, "Genre")
    _check_length(violations, fields, "album_name", ALBUM_MAX_LENGTH, "Album name")

    year = fields.get("release_year")
    if year is not None:
        max_year = date.today().year + 1
        if isinstance(year, bool) or not isinstance(year, int):
            violations.append(FieldViolation("release_year", "Release year must be a whole number"))
        elif not MIN_RELEASE_YEAR <= year <= max_year:
            violations.append(
                FieldViolation("release_year", f"Release year must be between {MIN_RELEASE_YEAR} and {max_year}")
            )

    return violations


def validate_media_type(content_type: str | None, prefix: str, field: str, label: str) -> list[FieldViolation]:
    if not content_type or not content_type.lower().startswith(prefix):
        return [FieldViolation(field, f"Invalid {label} format. Please upload an {label} file.")]
    return []


def validate_review_fields(rating: Any, comment: str | None) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        violations.append(FieldViolation("rating", f"Rating must be between {MIN_RATING} and {MAX_RATING}"))
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        violations.append(FieldViolation("comment", f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters"))
    return violations


def validate_page(page: int, size: int, max_size: int) -> None:
    violations: list[FieldViolation] = []
    if page < 0:
        violations.append(FieldViolation("page", "Page index must not be negative"))
    if size <= 0:
        violations.append(FieldViolation("size", "Page size must be positive"))
    elif size > max_size:
        violations.append(FieldViolation("size", f"Page size cannot exceed {max_size}"))
    if violations:
        raise ValidationError(violations=violations)


def require_text(value: str | None, field: str, label: str) -> str:
    if _is_blank(value):
        raise ValidationError(violations=[FieldViolation(field, f"{label} is required")])
    return value.strip()


def clean_music_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only editable keys, normalising strings and the price."""
    cleaned: dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if isinstance(value, str):
            value = value.strip()
            if key not in ("name", "category") and not value:
                value = None
        if key == "price" and value is not None:
            value = _to_decimal(value).quantize(PRICE_STEP)
        cleaned[key] = value
    return cleaned
