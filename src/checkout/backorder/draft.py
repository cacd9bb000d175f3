"""BackorderDraft aggregate: out-of-stock lines held for manual approval.

A draft is written in one go, header and items together. Its number carries
a ``DRAFT-`` prefix so it can never be mistaken for an order number.
"""

import time
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from checkout.domain import checkout

NO_ADDRESS = "Not provided"


class DraftStatus(Enum):
    PENDING_APPROVAL = "pending_approval"


def generate_draft_number() -> str:
    return f"DRAFT-{int(time.time() * 1000)}-{uuid4().hex[:9].upper()}"


@checkout.entity(part_of="BackorderDraft")
class DraftItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    line_id = String(max_length=255)
    name = String(max_length=255)
    sku = String(max_length=100)
    image = String(max_length=1000)
    size = String(max_length=50)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)


@checkout.aggregate
class BackorderDraft:
    draft_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    status = String(choices=DraftStatus, default=DraftStatus.PENDING_APPROVAL.value)
    total_amount = Float(default=0.0, min_value=0.0)
    shipping_address = Text(default=NO_ADDRESS)
    billing_address = Text(default=NO_ADDRESS)
    payment_method = String(max_length=20)
    payment_status = String(max_length=20)
    notes = Text()
    items = HasMany(DraftItem)
    drafted_at = DateTime()

    @invariant.post
    def total_must_match_items(self):
        if not self.items:
            return
        total = sum(item.total_price for item in self.items)
        if abs(total - (self.total_amount or 0)) >= 0.005:
            raise ValidationError({"total_amount": ["Draft total must equal the sum of its items"]})

    @classmethod
    def draft(cls, user_id, items, total_amount, address=None, payment_method=None, payment_status=None):
        from checkout.backorder.events import BackorderDrafted

        if not items:
            raise ValidationError({"items": ["A backorder draft needs at least one item"]})

        now = datetime.now(UTC)
        address = address or NO_ADDRESS
        draft = cls(
            draft_number=generate_draft_number(),
            user_id=user_id,
            total_amount=total_amount,
            shipping_address=address,
            billing_address=address,
            payment_method=payment_method,
            payment_status=payment_status,
            notes=f"Backorder for {len(items)} out-of-stock item(s)",
            drafted_at=now,
        )
        with atomic_change(draft):
            for item in items:
                draft.add_items(item)

        draft.raise_(
            BackorderDrafted(
                draft_id=draft.id,
                draft_number=draft.draft_number,
                user_id=user_id,
                item_count=len(items),
                total_amount=total_amount,
                drafted_at=now,
            )
        )
        return draft
