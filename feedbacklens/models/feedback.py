"""
Feedback data model.

Represents one raw unit of user feedback with its provenance metadata.
"""

from dataclasses import dataclass
from typing import Optional


REQUIRED_FIELDS = ("text", "source", "timestamp")
OPTIONAL_TEXT_FIELDS = ("product", "user_segment", "region", "area")


class FeedbackValidationError(ValueError):
    """Raised when a feedback payload is missing a required field or is malformed."""


@dataclass(frozen=True)
class FeedbackItem:
    """
    Raw user feedback.
    Immutable once created; the store assigns `id` and `created_at` on insert.
    """
    text: str  # Raw feedback text
    source: str  # Origin channel (e.g. "support", "app_store")
    timestamp: str  # ISO-8601, caller-supplied, used for ordering
    product: Optional[str] = None
    user_segment: Optional[str] = None
    region: Optional[str] = None
    area: Optional[str] = None
    rating: Optional[int] = None  # 1-5 or absent
    id: Optional[int] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise FeedbackValidationError(f"Missing required field: {name}")

        if self.rating is not None:
            if isinstance(self.rating, bool) or not isinstance(self.rating, int):
                raise FeedbackValidationError(f"Invalid rating: {self.rating!r}. Must be an integer")
            if not (1 <= self.rating <= 5):
                raise FeedbackValidationError(f"Invalid rating: {self.rating}. Must be 1-5")

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackItem":
        """
        Build a FeedbackItem from an inbound payload.

        Blank optional values are treated as absent. Numeric strings are
        accepted for `rating`.

        Raises:
            FeedbackValidationError: If a required field is missing or invalid
        """
        if not isinstance(data, dict):
            raise FeedbackValidationError("Feedback payload must be an object")

        missing = [
            name for name in REQUIRED_FIELDS
            if not isinstance(data.get(name), str) or not data.get(name).strip()
        ]
        if missing:
            raise FeedbackValidationError(
                f"Missing required fields: {', '.join(missing)}"
            )

        optional = {}
        for name in OPTIONAL_TEXT_FIELDS:
            value = data.get(name)
            optional[name] = str(value) if value not in (None, "") else None

        return cls(
            text=data["text"],
            source=data["source"],
            timestamp=data["timestamp"],
            rating=_coerce_rating(data.get("rating")),
            id=data.get("id"),
            created_at=data.get("created_at"),
            **optional
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "product": self.product,
            "text": self.text,
            "source": self.source,
            "timestamp": self.timestamp,
            "user_segment": self.user_segment,
            "region": self.region,
            "area": self.area,
            "rating": self.rating,
            "created_at": self.created_at,
        }


def _coerce_rating(value) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise FeedbackValidationError(f"Invalid rating: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        raise FeedbackValidationError(f"Invalid rating: {value!r}") from None

    # Whole-number floats such as "4.0" are accepted
    if not number.is_integer():
        raise FeedbackValidationError(f"Invalid rating: {value!r}. Must be an integer")
    return int(number)
