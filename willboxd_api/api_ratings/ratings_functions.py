import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..errors import ValidationError
from ..storage import generate_id
from ..utils import utc_timestamp_iso

logger = logging.getLogger(__name__)

RATINGS_COLLECTION = "ratings"
RATING_KEY_FIELDS = ["item_id", "voter_key"]
MIN_RATING = 1
MAX_RATING = 5
MAX_RATING_DIGITS = 3
ANONYMOUS_VOTER = "anonymous"


@dataclass(frozen=True)
class RequestContext:
    """Request metadata available for deriving a voter identity."""

    remote_addr: str | None = None
    forwarded_for: str | None = None


@dataclass(frozen=True)
class AggregateStats:
    """Count, sum and one-decimal mean of the ratings of one item."""

    count: int = 0
    sum: int = 0
    mean: float = 0

    def to_dict(self):
        return {"total": self.count, "sum": self.sum, "average": self.mean}


class IdentityResolver:
    """
    Derive a best-effort voter key from request metadata.

    The key is the client network address, so it is spoofable and shared by
    clients behind the same NAT. It limits casual repeat voting only.

    Args:
        mode (str): ``"address"`` keys voters by address, ``"none"`` gives every
            submission its own key so votes are unlimited.
        trust_proxy_headers (bool): Prefer the first ``X-Forwarded-For`` entry.
    """

    def __init__(self, mode: str = "address", trust_proxy_headers: bool = False):
        self.mode = mode
        self.trust_proxy_headers = trust_proxy_headers

    def resolve(self, context: RequestContext):
        """
        Resolve the voter key for a request.

        Args:
            context (RequestContext): Metadata of the incoming request.

        Returns:
            str: Non-empty voter key, ``"anonymous"`` when no address is known.
        """
        if self.mode == "none":
            return f"vote-{generate_id()}"

        if self.trust_proxy_headers and context.forwarded_for:
            forwarded = context.forwarded_for.split(",")[0].strip()
            if forwarded:
                return forwarded

        address = (context.remote_addr or "").strip()
        return address or ANONYMOUS_VOTER


def compute_stats(values: list[int]):
    """
    Aggregate rating values.

    Args:
        values (list[int]): Rating values of a single item.

    Returns:
        AggregateStats: Count, sum and mean rounded half-up to one decimal,
        with a mean of 0 when there are no values.
    """
    count = len(values)
    total = sum(values)
    if count == 0:
        return AggregateStats(0, 0, 0)

    mean = (Decimal(total) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return AggregateStats(count, total, float(mean))


def parse_rating_value(raw):
    """
    Convert a JSON rating into an integer.

    Args:
        raw (Any): Value from the request body.

    Returns:
        int: Integral rating value (range is checked by the aggregator).

    Raises:
        ValidationError: When the value is missing or not integral.
    """
    if raw is None or isinstance(raw, bool):
        raise ValidationError("rating must be an integer between 1 and 5")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        digits = raw.strip()
        if digits.isascii() and digits.isdigit() and len(digits) <= MAX_RATING_DIGITS:
            try:
                return int(digits)
            except ValueError as exc:
                raise ValidationError("rating must be an integer between 1 and 5") from exc
    raise ValidationError("rating must be an integer between 1 and 5")


def validate_submission(item_id, voter_key, value):
    """
    Check submission arguments before anything touches the store.

    Raises:
        ValidationError: On empty identifiers or a value outside [1, 5].
    """
    if not isinstance(item_id, str) or not item_id.strip():
        raise ValidationError("item_id is required")
    if not isinstance(voter_key, str) or not voter_key:
        raise ValidationError("voter_key is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("rating must be an integer between 1 and 5")
    if value < MIN_RATING or value > MAX_RATING:
        raise ValidationError("rating must be between 1 and 5")


class RatingAggregator:
    """
    Record one rating per voter and item and summarize the ratings of an item.

    Aggregates are recomputed from the ratings collection on every call and
    never stored. Concurrent submissions from other voters on the same item
    may not be reflected in the stats returned by ``submit``; the next
    ``query`` sees them.
    """

    def __init__(self, store):
        """
        Args:
            store: Connected document store.
        """
        self.store = store
        self.store.ensure_unique_index(RATINGS_COLLECTION, RATING_KEY_FIELDS)

    def submit(self, item_id: str, voter_key: str, value: int) -> AggregateStats:
        """
        Record or overwrite the voter's rating for an item.

        Args:
            item_id (str): Rated item.
            voter_key (str): Identity from ``IdentityResolver``.
            value (int): Rating between 1 and 5.

        Returns:
            AggregateStats: Stats of the item after the write.

        Raises:
            ValidationError: Invalid arguments; nothing is written.
            StorageError: The store failed; not retried.
        """
        validate_submission(item_id, voter_key, value)

        rating = self.store.upsert_one(
            RATINGS_COLLECTION,
            {"item_id": item_id, "voter_key": voter_key},
            {"value": value, "recorded_at": utc_timestamp_iso()},
            {"id": generate_id()},
        )
        logger.info(f"Recorded rating {value} for {item_id!r} as {rating['id']}")
        return self.query(item_id)

    def query(self, item_id: str) -> AggregateStats:
        """
        Summarize the ratings of an item without modifying anything.

        Args:
            item_id (str): Item to summarize.

        Returns:
            AggregateStats: Zero-valued stats when the item has no ratings.
        """
        ratings = self.store.find_many(RATINGS_COLLECTION, {"item_id": item_id})
        return compute_stats([int(rating["value"]) for rating in ratings])
