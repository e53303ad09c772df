"""Data models for resolved format/price facts and filter criteria."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..client.errors import DecodeError
from .release import DedupedRelease


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert an API price to Decimal, keeping None as None."""
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise DecodeError(f"bad price value: {value!r}") from e


@dataclass(frozen=True)
class ArtistCredit:
    """An artist credit; `anv` overrides the displayed name."""

    name: str
    anv: str = ""
    join: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ArtistCredit":
        try:
            return cls(
                name=data["name"],
                anv=data.get("anv") or "",
                join=data.get("join") or "",
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"malformed artist credit: {e}") from e


def format_artists(credits: Iterable[ArtistCredit]) -> str:
    """
    Render artist credits for display.

    Uses the name variation when present and the credit's own join string
    between names, padding it with spaces when the API left them out.
    """
    credits = list(credits)
    parts = []
    for i, credit in enumerate(credits):
        parts.append(credit.anv or credit.name)
        if i < len(credits) - 1:
            joiner = credit.join or "&"
            if not (joiner.startswith(" ") or joiner == ","):
                joiner = f" {joiner} "
            parts.append(joiner)
    return "".join(parts)


@dataclass(frozen=True)
class ResolvedFacts:
    """Authoritative format and marketplace data for one master or release."""

    formats: FrozenSet[str] = frozenset()
    lowest_price: Optional[Decimal] = None
    num_for_sale: Optional[int] = None
    artists: Tuple[ArtistCredit, ...] = ()
    release_id: Optional[int] = None  # main_release for masters


@dataclass(frozen=True)
class FilterCriteria:
    """Format and price constraints for one run. All format names lower case."""

    has: FrozenSet[str] = frozenset()
    not_: FrozenSet[str] = frozenset()
    only: FrozenSet[str] = frozenset()
    ignore: FrozenSet[str] = frozenset()
    price_limit: Optional[Decimal] = None

    @classmethod
    def build(
        cls,
        has: Iterable[str] = (),
        not_: Iterable[str] = (),
        only: Iterable[str] = (),
        ignore: Iterable[str] = (),
        price_limit: Optional[Decimal] = None,
    ) -> "FilterCriteria":
        def lower(values):
            return frozenset(v.strip().lower() for v in values if v.strip())

        return cls(
            has=lower(has),
            not_=lower(not_),
            only=lower(only),
            ignore=lower(ignore),
            price_limit=price_limit,
        )

    @property
    def has_format_filters(self) -> bool:
        return bool(self.has or self.not_ or self.only)

    @property
    def has_exclusions(self) -> bool:
        """True when a single unwanted format can disqualify an entity."""
        return bool(self.not_ or self.only)

    @property
    def is_empty(self) -> bool:
        return not self.has_format_filters and self.price_limit is None

    def _sections(self) -> List[Tuple[str, List[str]]]:
        return [
            ("only", sorted(self.only)),
            ("has", sorted(self.has)),
            ("not", sorted(self.not_)),
            ("ignore", sorted(self.ignore)),
        ]

    def summary(self) -> str:
        """Compact query string, e.g. 'has:vinyl not:cd,file <$50'."""
        parts = [f"{name}:{','.join(values)}" for name, values in self._sections() if values]
        if self.price_limit is not None:
            parts.append(f"<${self.price_limit:.0f}")
        return " ".join(parts)

    def headline(self) -> str:
        """Heading for the results listing."""
        if self.is_empty:
            return "=== All releases ==="
        words = {"only": "only", "has": "with", "not": "without", "ignore": "ignoring"}
        text = "=== Releases"
        for name, values in self._sections():
            if values:
                text += f" {words[name]} [{', '.join(values)}]"
        if self.price_limit is not None:
            text += f" under ${self.price_limit:.2f}"
        return text + " ==="


@dataclass
class MatchedEntity:
    """A deduplicated release together with the facts that let it pass."""

    release: DedupedRelease
    facts: ResolvedFacts = field(default_factory=ResolvedFacts)


@dataclass
class FilterTag:
    """One tag entry stored in a wantlist item's notes."""

    query: str
    artist: str
    date: str

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.query, self.artist)
