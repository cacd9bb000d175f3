"""Domain events for backorder drafts."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="BackorderDraft")
class BackorderDrafted:
    """Out-of-stock lines were captured as a draft awaiting approval."""

    __version__ = 1

    draft_id = Identifier(required=True)
    draft_number = String(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    drafted_at = DateTime(required=True)
