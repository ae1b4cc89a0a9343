# app/services/product_form.py
"""
Product form parsing.

Product writes arrive as multipart form data: every value is a string,
lists come as indexed keys (`sizes[0]`, `sizes[1]`) or repeated keys, and
images come as file parts. This module turns that into typed attributes.

`parse_product_form` is a pure function returning a `ProductFormResult`
(attributes or a list of field errors). `check_image_files` performs the
request-level file checks and raises `UploadRejected`.
"""
import json
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from app.core.errors import UploadRejected

FormFields = Mapping[str, Sequence[Any]]

TRUE_TOKEN = "true"

# Largest value an INTEGER column holds on every supported database
MAX_STORED_INT = 2**31 - 1

OPTIONAL_TEXT_FIELDS = {
    "discount": "discount",
    "description": "description",
    "material": "material",
    "careInstructions": "care_instructions",
}


@dataclass
class UploadedImage:
    filename: str
    content_type: str
    data: bytes
    size: int


@dataclass
class ProductForm:
    """Raw product submission: multi-valued text fields plus image files."""

    fields: dict[str, list[Any]] = field(default_factory=dict)
    files: list[UploadedImage] = field(default_factory=list)


@dataclass
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ProductFormResult:
    """
    Outcome of parsing a product form.

    values: model attribute name -> coerced value. On create every attribute
        is present; on update only the ones the request changes.
    existing_images: URLs the client wants to keep (update only).
    """

    values: dict[str, Any] = field(default_factory=dict)
    existing_images: list[str] = field(default_factory=list)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ----- Raw field access -----


def _raw(fields: FormFields, key: str) -> Any:
    """Last submitted value for `key`, or None when the key is absent."""
    values = fields.get(key)
    if not values:
        return None
    return values[-1]


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def gather_list(fields: FormFields, key: str) -> list[str] | None:
    """
    Collect a list field.

    Accepted shapes, in priority order:
      - indexed keys:  key[0]=a, key[1]=b   (ordered by index)
      - repeated keys: key=a, key=b  (or key[]=a, key[]=b)
      - one value holding a JSON array: key='["a", "b"]'

    Returns None when the field was not submitted at all; otherwise the
    trimmed, non-empty entries.
    """
    pattern = re.compile(rf"^{re.escape(key)}\[(\d+)\]$")
    indexed: list[tuple[int, Any]] = []
    for name, values in fields.items():
        match = pattern.match(name)
        if match and values:
            indexed.append((int(match.group(1)), values[-1]))

    if indexed:
        raw_items = [value for _, value in sorted(indexed, key=lambda item: item[0])]
    elif key in fields or f"{key}[]" in fields:
        raw_items = list(fields.get(key, [])) + list(fields.get(f"{key}[]", []))
        if len(raw_items) == 1 and isinstance(raw_items[0], str):
            candidate = raw_items[0].strip()
            if candidate.startswith("["):
                try:
                    decoded = json.loads(candidate)
                except ValueError:
                    decoded = None
                if isinstance(decoded, list):
                    raw_items = decoded
    else:
        return None

    items = []
    for item in raw_items:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


# ----- Coercion helpers -----


def _parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def _parse_non_negative_float(value: Any) -> float | None:
    number = _parse_decimal(value)
    if number is None or number < 0:
        return None
    result = float(number)
    return result if math.isfinite(result) else None


def _parse_non_negative_int(value: Any) -> int | None:
    number = _parse_decimal(value)
    if number is None or number < 0 or number > MAX_STORED_INT:
        return None
    if number != number.to_integral_value():
        return None
    return int(number)


LENIENT_NUMBERS = {
    # form key: (attribute, parser, create default, nullable)
    "originalPrice": ("original_price", _parse_non_negative_float, None, True),
    "stock": ("stock", _parse_non_negative_int, 0, False),
    "rating": ("rating", _parse_non_negative_float, 0.0, False),
    "reviewsCount": ("reviews_count", _parse_non_negative_int, 0, False),
}


# ----- Public API -----


def parse_product_form(
    fields: FormFields,
    *,
    partial: bool = False,
    empty_clears: bool = True,
) -> ProductFormResult:
    """
    Coerce raw product form fields into model attributes.

    Args:
        fields: form key -> submitted values (strings).
        partial: update mode. Absent fields are left out of the result so
            the stored value is kept.
        empty_clears: update mode only. When True an empty string clears a
            nullable field (and is an error for name/price/category); when
            False an empty string is treated like an absent field.

    Rules:
      - name: trimmed, required.
      - price: decimal > 0, required.
      - category: non-blank id, required.
      - originalPrice/stock/rating/reviewsCount: invalid values silently
        fall back to the default (create) or stored value (update).
      - isNew: True only for the literal "true".
      - sizes: see gather_list.
    """
    result = ProductFormResult()
    values = result.values

    def error(name: str, message: str) -> None:
        result.errors.append(FieldError(name, message))

    def skipped(raw: Any) -> bool:
        """True when an update should leave this field untouched."""
        if not partial:
            return False
        return raw is None or (_is_blank(raw) and not empty_clears)

    # name
    raw = _raw(fields, "name")
    if not skipped(raw):
        name = str(raw).strip() if raw is not None else ""
        if not name:
            error("name", "Product name is required")
        else:
            values["name"] = name

    # price
    raw = _raw(fields, "price")
    if not skipped(raw):
        price = _parse_decimal(raw)
        if raw is None or _is_blank(raw):
            error("price", "Price is required")
        elif price is None or price <= 0 or not math.isfinite(float(price)):
            error("price", "Price must be a number greater than 0")
        else:
            values["price"] = float(price)

    # category
    raw = _raw(fields, "category")
    if not skipped(raw):
        category = str(raw).strip() if raw is not None else ""
        if not category:
            error("category", "Category is required")
        else:
            values["category_id"] = category

    # optional text
    for key, attr in OPTIONAL_TEXT_FIELDS.items():
        raw = _raw(fields, key)
        if skipped(raw):
            continue
        text = str(raw).strip() if raw is not None else ""
        values[attr] = text or None

    # lenient numbers
    for key, (attr, parser, default, nullable) in LENIENT_NUMBERS.items():
        raw = _raw(fields, key)
        if skipped(raw):
            continue
        parsed = parser(raw)
        if parsed is not None:
            values[attr] = parsed
        elif not partial:
            values[attr] = default
        elif nullable and _is_blank(raw):
            values[attr] = None

    # isNew
    raw = _raw(fields, "isNew")
    if not skipped(raw):
        values["is_new"] = raw is True or (isinstance(raw, str) and raw.strip() == TRUE_TOKEN)

    # sizes
    sizes = gather_list(fields, "sizes")
    if sizes is None:
        if not partial:
            values["sizes"] = []
    elif sizes or not partial or empty_clears:
        values["sizes"] = sizes

    if partial:
        kept = gather_list(fields, "existingImages") or []
        result.existing_images = list(dict.fromkeys(kept))

    return result


def too_many_images(max_files: int) -> UploadRejected:
    return UploadRejected(f"Too many images: at most {max_files} files per request")


def oversized_image_problem(filename: str, max_bytes: int) -> dict[str, str]:
    limit_mb = max_bytes / (1024 * 1024)
    return {"field": "images", "message": f"{filename}: larger than {limit_mb:g} MB"}


def check_image_files(
    files: Sequence[UploadedImage],
    *,
    max_files: int,
    max_bytes: int,
) -> None:
    """
    Request-level checks on attached images.

    Raises:
        UploadRejected: too many files, a non-image content type, or a file
            over the size ceiling. The whole request fails.
    """
    if len(files) > max_files:
        raise too_many_images(max_files)

    problems = []
    for upload in files:
        if not (upload.content_type or "").lower().startswith("image/"):
            problems.append(
                {"field": "images", "message": f"{upload.filename}: only image files are allowed"}
            )
        elif upload.size > max_bytes:
            problems.append(oversized_image_problem(upload.filename, max_bytes))
    if problems:
        raise UploadRejected("Rejected image upload", problems)
