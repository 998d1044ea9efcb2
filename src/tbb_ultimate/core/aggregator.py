import asyncio
import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from tbb_ultimate.core.types import ArbitrageOpportunity, PriceQuote
from tbb_ultimate.utils.logger import TradingLogger

class PriceSource(Protocol):
    name: str

    async def get_price(self, input_mint: str, output_mint: str, amount: int) -> Optional[float]:
        ...

@dataclass
class SpreadAnalysis:
    """Comparison of every source that reported a price for a pair"""
    quotes: List[PriceQuote]
    threshold: float
    cheapest: Optional[PriceQuote] = None
    richest: Optional[PriceQuote] = None
    spread: Optional[float] = None

    @property
    def has_enough_data(self) -> bool:
        return len(self.quotes) >= 2

    @property
    def opportunity(self) -> Optional[ArbitrageOpportunity]:
        if not self.has_enough_data or self.spread is None or self.spread <= self.threshold:
            return None
        # Buying and selling on the same venue is not an arbitrage
        if self.cheapest is self.richest:
            return None
        return ArbitrageOpportunity(
            spread=self.spread,
            buy_on=self.cheapest.source,
            sell_on=self.richest.source,
            buy_price=self.cheapest.price,
            sell_price=self.richest.price,
        )

def analyze_spread(quotes: Sequence[PriceQuote], threshold: float) -> SpreadAnalysis:
    """
    Pick the cheapest and richest quotes and compute the relative spread.

    Only quotes with a price take part. On ties the source listed first
    wins for both extremes.
    """
    valid = [q for q in quotes if q.has_price]
    analysis = SpreadAnalysis(quotes=valid, threshold=threshold)
    if not analysis.has_enough_data:
        return analysis

    cheapest = valid[0]
    richest = valid[0]
    for quote in valid[1:]:
        if quote.price < cheapest.price:
            cheapest = quote
        if quote.price > richest.price:
            richest = quote

    analysis.cheapest = cheapest
    analysis.richest = richest
    analysis.spread = (richest.price - cheapest.price) / cheapest.price
    return analysis

class QuoteAggregator:
    def __init__(self, sources: Sequence[PriceSource], spread_threshold: float = 0.01,
                 logger: Optional[TradingLogger] = None):
        self.sources = list(sources)
        self.spread_threshold = spread_threshold
        self.logger = logger or TradingLogger("tbb_ultimate.aggregator")

    async def _query(self, source: PriceSource, input_mint: str, output_mint: str, amount: int) -> PriceQuote:
        # A failing source counts as a source with no data
        try:
            price = await source.get_price(input_mint, output_mint, amount)
        except Exception as e:
            self.logger.debug(f"{source.name} price lookup failed: {str(e)}")
            return PriceQuote(source=source.name)

        try:
            price = float(price) if price is not None else None
        except (TypeError, ValueError):
            price = None
        if price is None or not math.isfinite(price) or price <= 0:
            return PriceQuote(source=source.name)
        return PriceQuote(source=source.name, price=price)

    async def collect_quotes(self, input_mint: str, output_mint: str, amount: int) -> List[PriceQuote]:
        """Query all sources concurrently; results keep source-list order"""
        quotes = await asyncio.gather(*(
            self._query(source, input_mint, output_mint, amount) for source in self.sources
        ))
        return list(quotes)

    async def analyze(self, input_mint: str, output_mint: str, amount: int) -> SpreadAnalysis:
        quotes = await self.collect_quotes(input_mint, output_mint, amount)
        analysis = analyze_spread(quotes, self.spread_threshold)

        reported = ", ".join(f"{q.source}={q.price}" for q in analysis.quotes) or "none"
        self.logger.info(f"Quotes for {input_mint}/{output_mint}: {reported}")
        if analysis.spread is not None:
            self.logger.info(f"Spread {analysis.spread:.4%} (threshold {self.spread_threshold:.4%})")
        return analysis
