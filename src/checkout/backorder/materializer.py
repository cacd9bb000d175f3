"""Capture out-of-stock cart lines as a backorder draft.

Lines that never resolved to a product cannot be drafted. They are skipped,
counted, and left in the cart so the shopper can deal with them. When
nothing is draftable no draft is written at all.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from checkout.address.port import AddressSnapshot
from checkout.availability.partitioner import ResolvedLine
from checkout.backorder.draft import BackorderDraft, DraftItem
from checkout.cart.port import CartStore
from checkout.errors import PersistenceFailure
from checkout.order.order import PaymentMethod, PaymentStatus
from checkout.pricing.engine import line_total, money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BackorderRef:
    draft_id: str
    draft_number: str
    status: str
    total_amount: float
    item_count: int
    line_ids: tuple[str, ...]


@dataclass(frozen=True)
class BackorderResult:
    draft: BackorderRef | None
    processed_count: int
    skipped_count: int
    skipped_line_ids: tuple[str, ...] = ()


def build_draft_item(resolved: ResolvedLine) -> DraftItem:
    line = resolved.line
    total = line_total(line)
    return DraftItem(
        product_id=resolved.product_id,
        variant_id=resolved.variant_id,
        line_id=line.line_id,
        name=line.name,
        sku=line.sku,
        image=line.image,
        size=line.variant_hint.size,
        color=line.variant_hint.color,
        quantity=line.quantity,
        unit_price=money(total / line.quantity),
        total_price=total,
    )


class BackorderMaterializer:
    def __init__(self, cart: CartStore):
        self.cart = cart

    def materialize(
        self,
        lines: list[ResolvedLine],
        user_id,
        address: AddressSnapshot | None = None,
        payment_method: str = PaymentMethod.COD.value,
    ) -> BackorderResult:
        draftable = [resolved for resolved in lines if resolved.product_id is not None]
        skipped = tuple(resolved.line_id for resolved in lines if resolved.product_id is None)
        if skipped:
            logger.warning("backorder_lines_skipped", user_id=user_id, line_ids=list(skipped))

        if not draftable:
            return BackorderResult(draft=None, processed_count=0, skipped_count=len(skipped), skipped_line_ids=skipped)

        try:
            items = [build_draft_item(resolved) for resolved in draftable]
            draft = BackorderDraft.draft(
                user_id=user_id,
                items=items,
                total_amount=money(sum(item.total_price for item in items)),
                address=address.one_line() if address is not None else None,
                payment_method=payment_method,
                payment_status=PaymentStatus.PENDING.value,
            )
            current_domain.repository_for(BackorderDraft).add(draft)
        except Exception as exc:
            logger.error("backorder_write_failed", user_id=user_id, lines=len(draftable), exc_info=True)
            raise PersistenceFailure("We could not save your backorder. Please try again.") from exc

        line_ids = tuple(resolved.line_id for resolved in draftable)
        try:
            self.cart.remove(user_id, line_ids)
        except Exception:
            logger.error("cart_cleanup_failed", draft_id=str(draft.id), line_ids=list(line_ids), exc_info=True)

        logger.info(
            "backorder_drafted",
            draft_id=str(draft.id),
            draft_number=draft.draft_number,
            items=len(items),
            skipped=len(skipped),
        )
        return BackorderResult(
            draft=BackorderRef(
                draft_id=str(draft.id),
                draft_number=draft.draft_number,
                status=draft.status,
                total_amount=draft.total_amount,
                item_count=len(items),
                line_ids=line_ids,
            ),
            processed_count=len(items),
            skipped_count=len(skipped),
            skipped_line_ids=skipped,
        )
