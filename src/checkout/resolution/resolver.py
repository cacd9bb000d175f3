"""Catalog resolution for cart lines whose product reference cannot be trusted.

A cart line may point at its product through a clean id, a composite key with
an id buried inside it, a SKU, or only a display name. Each strategy below is
a pure function of the line and the catalogue; ``resolve`` walks them in
priority order and the first one that produces a result wins.

Resolution never raises. A catalogue error inside a strategy is logged and
treated as "no match", so the next strategy gets its turn.
"""

import re
from dataclasses import dataclass
from typing import Callable

import structlog

from checkout.cart.port import CartLine, VariantHint
from checkout.catalog.port import CatalogPort, CatalogProduct

logger = structlog.get_logger(__name__)

_UUID = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
_WELL_FORMED_ID = re.compile(rf"^{_UUID}$")
_EMBEDDED_ID = re.compile(_UUID)


def is_well_formed_id(value: str | None) -> bool:
    return bool(value) and _WELL_FORMED_ID.match(value.strip()) is not None


@dataclass(frozen=True)
class Resolution:
    product_id: str | None
    variant_id: str | None
    product: CatalogProduct | None = None
    strategy: str | None = None

    @property
    def resolved(self) -> bool:
        return self.product_id is not None


UNRESOLVED = Resolution(product_id=None, variant_id=None)


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def match_variant(product: CatalogProduct | None, hint: VariantHint) -> str | None:
    """Pick the variant of ``product`` that the cart line meant.

    A blank size or colour in the hint matches anything. With no exact match
    the first variant carrying a usable id is taken; a product without usable
    variants falls back to whatever id the hint itself carried.
    """
    if product is None or not product.variants:
        return hint.variant_id

    wanted_size = _normalize(hint.size)
    wanted_color = _normalize(hint.color)
    for variant in product.variants:
        size_ok = not wanted_size or _normalize(variant.size_label) == wanted_size
        color_ok = not wanted_color or _normalize(variant.color_label) == wanted_color
        if size_ok and color_ok and is_well_formed_id(variant.variant_id):
            return variant.variant_id

    fallback = next((v for v in product.variants if is_well_formed_id(v.variant_id)), None)
    if fallback is not None:
        return fallback.variant_id
    return hint.variant_id


def _lookup(strategy: str, line: CartLine, fetch: Callable[[], CatalogProduct | None]) -> CatalogProduct | None:
    try:
        return fetch()
    except Exception as exc:
        logger.warning(
            "catalog_lookup_failed",
            strategy=strategy,
            line_id=line.line_id,
            error=str(exc),
        )
        return None


def _found(product: CatalogProduct | None, line: CartLine, strategy: str) -> Resolution | None:
    if product is None or not is_well_formed_id(product.product_id):
        return None
    return Resolution(
        product_id=product.product_id,
        variant_id=match_variant(product, line.variant_hint),
        product=product,
        strategy=strategy,
    )


# ---------------------------------------------------------------------------
# Strategies, highest priority first
# ---------------------------------------------------------------------------
def by_product_id(line: CartLine, catalog: CatalogPort) -> Resolution | None:
    """The raw reference already is a product id.

    The id is kept even when the catalogue cannot confirm it, since the
    reference came from the catalogue when the line was added.
    """
    ref = (line.raw_product_ref or "").strip()
    if not is_well_formed_id(ref):
        return None
    product = _lookup("product_id", line, lambda: catalog.get_by_id(ref))
    return Resolution(
        product_id=ref,
        variant_id=match_variant(product, line.variant_hint),
        product=product,
        strategy="product_id",
    )


def by_embedded_id(line: CartLine, catalog: CatalogPort) -> Resolution | None:
    """An id hides inside a composite key such as ``<product>-<size>-<colour>``."""
    for candidate in (line.line_id, line.raw_product_ref):
        match = _EMBEDDED_ID.search(candidate or "")
        if match is None:
            continue
        product = _lookup("embedded_id", line, lambda: catalog.get_by_id(match.group(0)))
        resolution = _found(product, line, "embedded_id")
        if resolution is not None:
            return resolution
    return None


def by_sku(line: CartLine, catalog: CatalogPort) -> Resolution | None:
    for candidate in (line.raw_product_ref, line.sku):
        sku = (candidate or "").strip()
        if not sku:
            continue
        product = _lookup("sku", line, lambda: catalog.find_by_sku(sku))
        resolution = _found(product, line, "sku")
        if resolution is not None:
            return resolution
    return None


def by_name(line: CartLine, catalog: CatalogPort) -> Resolution | None:
    name = (line.name or "").strip()
    if not name:
        return None
    product = _lookup("name", line, lambda: catalog.search_by_name(name))
    return _found(product, line, "name")


STRATEGIES: tuple[Callable[[CartLine, CatalogPort], Resolution | None], ...] = (
    by_product_id,
    by_embedded_id,
    by_sku,
    by_name,
)


def resolve(line: CartLine, catalog: CatalogPort, strategies=STRATEGIES) -> Resolution:
    """Resolve ``line`` to a catalogue product and variant, or UNRESOLVED."""
    for strategy in strategies:
        resolution = strategy(line, catalog)
        if resolution is not None:
            logger.debug(
                "cart_line_resolved",
                line_id=line.line_id,
                strategy=resolution.strategy,
                product_id=resolution.product_id,
            )
            return resolution

    logger.info("cart_line_unresolved", line_id=line.line_id, raw_product_ref=line.raw_product_ref)
    return UNRESOLVED
