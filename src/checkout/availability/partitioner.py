"""Split a cart into lines that can ship now and lines that must be backordered.

Each line is resolved and its live stock read on a bounded worker pool. Every
line's work is capped by the lookup timeout: a line whose lookup fails, times
out or returns nothing is decided from the stock cached on the cart line
instead, and is flagged ``degraded``. A line with no cached stock is treated
as out of stock.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field

import structlog

from checkout.cart.port import CartLine
from checkout.catalog.port import CatalogPort
from checkout.config import EngineSettings
from checkout.resolution.resolver import UNRESOLVED, Resolution, resolve

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedLine:
    line: CartLine
    product_id: str | None
    variant_id: str | None
    available_quantity: int
    strategy: str | None = None
    degraded: bool = False

    @property
    def line_id(self) -> str:
        return self.line.line_id

    @property
    def requested_quantity(self) -> int:
        return self.line.quantity

    @property
    def in_stock(self) -> bool:
        return self.available_quantity >= self.requested_quantity


@dataclass
class Partition:
    in_stock: list[ResolvedLine] = field(default_factory=list)
    out_of_stock: list[ResolvedLine] = field(default_factory=list)

    @property
    def lines(self) -> list[ResolvedLine]:
        return self.in_stock + self.out_of_stock


def _degraded(line: CartLine, resolution: Resolution) -> ResolvedLine:
    return ResolvedLine(
        line=line,
        product_id=resolution.product_id,
        variant_id=resolution.variant_id,
        available_quantity=line.stock_hint or 0,
        strategy=resolution.strategy,
        degraded=True,
    )


class AvailabilityPartitioner:
    def __init__(self, catalog: CatalogPort, settings: EngineSettings | None = None):
        self.catalog = catalog
        self.settings = settings or EngineSettings()

    def _live_quantity(self, resolution: Resolution) -> int | None:
        if resolution.product is not None and resolution.product.variants and resolution.variant_id:
            return self.catalog.variant_quantity(resolution.variant_id)
        return self.catalog.product_quantity(resolution.product_id)

    def assess(self, line: CartLine) -> ResolvedLine:
        """Resolve one line and decide its availability. Never raises."""
        resolution = resolve(line, self.catalog)
        if not resolution.resolved:
            return _degraded(line, resolution)

        try:
            quantity = self._live_quantity(resolution)
        except Exception as exc:
            logger.warning("stock_lookup_failed", line_id=line.line_id, error=str(exc))
            return _degraded(line, resolution)

        if quantity is None:
            return _degraded(line, resolution)

        return ResolvedLine(
            line=line,
            product_id=resolution.product_id,
            variant_id=resolution.variant_id,
            available_quantity=quantity,
            strategy=resolution.strategy,
        )

    def partition(self, lines: list[CartLine]) -> Partition:
        """Return a disjoint cover of ``lines``, each side in cart order."""
        result = Partition()
        if not lines:
            return result

        timeout = self.settings.lookup_timeout_seconds
        executor = ThreadPoolExecutor(
            max_workers=min(self.settings.lookup_workers, len(lines)),
            thread_name_prefix="checkout-lookup",
        )
        try:
            futures = [executor.submit(self.assess, line) for line in lines]
            for line, future in zip(lines, futures):
                try:
                    assessed = future.result(timeout=timeout)
                except FutureTimeout:
                    logger.warning("line_lookup_timed_out", line_id=line.line_id, timeout=timeout)
                    assessed = _degraded(line, UNRESOLVED)

                if assessed.in_stock:
                    result.in_stock.append(assessed)
                else:
                    result.out_of_stock.append(assessed)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            "cart_partitioned",
            in_stock=len(result.in_stock),
            out_of_stock=len(result.out_of_stock),
            degraded=sum(1 for line in result.lines if line.degraded),
        )
        return result
