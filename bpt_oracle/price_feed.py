"""
price_feed.py - Price source adapter

Fetches a single scalar price from an external feed and normalises it to the
canonical 18-decimal scale.

Classes:
- FeedAnswer: Raw answer plus the feed's declared decimals
- PriceSourceAdapter: Validated fetch through a ChainView
- StaticPriceFeed: In-memory feed with a settable answer

A feed that fails, returns nothing, returns something that is not an integer,
or returns a non-positive answer yields PriceUnavailable. A missing price is
never treated as zero and never replaced by a previously seen value.
"""

from dataclasses import dataclass
from typing import Any

from .core import (
    ASSET_KIND_FEED,
    Address,
    ChainView,
    OracleError,
    PriceUnavailable,
)
from .normalizer import DecimalNormalizer


@dataclass(frozen=True, slots=True)
class FeedAnswer:
    """
    A validated feed response.

    Attributes:
        source: Identity of the feed.
        answer: Raw answer in the feed's own decimals (always > 0).
        decimals: Decimal count declared by the feed.
    """
    source: Address
    answer: int
    decimals: int


def _validate_answer(source: Address, answer: Any) -> int:
    if answer is None:
        raise PriceUnavailable(source, "answer absent")
    if isinstance(answer, bool) or not isinstance(answer, int):
        raise PriceUnavailable(source, f"malformed answer of type {type(answer).__name__}")
    if answer <= 0:
        raise PriceUnavailable(source, f"non-positive answer {answer}")
    return answer


class PriceSourceAdapter:
    """
    Reads feeds through a ChainView and scales answers with a DecimalNormalizer.

    The adapter performs no caching of answers; every call reads the feed.
    """

    def __init__(self, chain: ChainView, normalizer: DecimalNormalizer):
        self.chain = chain
        self.normalizer = normalizer

    def fetch_price(self, source: Address) -> FeedAnswer:
        """
        Read the latest answer and declared decimals of a feed.

        Raises:
            PriceUnavailable: If the feed cannot be resolved, the call fails,
                              or the answer is absent, malformed or non-positive
        """
        try:
            feed = self.chain.get_price_feed(source)
            raw = feed.latest_answer()
            decimals = feed.decimals()
        except OracleError:
            raise
        except Exception as exc:
            raise PriceUnavailable(source, f"call failed: {exc!r}") from exc

        answer = _validate_answer(source, raw)
        if isinstance(decimals, bool) or not isinstance(decimals, int):
            raise PriceUnavailable(source, f"malformed decimals {decimals!r}")
        return FeedAnswer(source=source, answer=answer, decimals=decimals)

    def fetch_normalized(self, source: Address) -> int:
        """Latest answer of a feed at the canonical 18-decimal scale."""
        return self.normalizer.normalize(source, self.fetch_price(source).answer, kind=ASSET_KIND_FEED)


class StaticPriceFeed:
    """
    In-memory price feed.

    The answer is stored raw, in the feed's own decimals, exactly as an
    on-chain aggregator would report it.

    Example:
        feed = StaticPriceFeed(200_000_000, decimals=8)   # 2.0
        feed.update_answer(210_000_000)
    """

    def __init__(self, answer: Any, decimals: int = 8):
        self.answer = answer
        self._decimals = decimals

    def latest_answer(self) -> Any:
        return self.answer

    def decimals(self) -> int:
        return self._decimals

    def update_answer(self, answer: Any) -> None:
        """Replace the reported answer."""
        self.answer = answer

    def __repr__(self):
        return f"StaticPriceFeed(answer={self.answer}, decimals={self._decimals})"
