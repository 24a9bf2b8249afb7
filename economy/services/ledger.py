from decimal import Decimal

from economy.models import NFTTransaction

ZERO = Decimal("0.00")


def record_nft_transaction(
    nft,
    transaction_type,
    to_user_id,
    from_user_id=None,
    amount=ZERO,
    fee=ZERO,
    net_amount=ZERO,
    bid=None,
    notes="",
) -> NFTTransaction:
    """Append one audit row for a marketplace action. Must run inside the action's transaction."""
    return NFTTransaction.objects.create(
        nft=nft,
        transaction_type=transaction_type,
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        amount=amount,
        fee=fee,
        net_amount=net_amount,
        bid=bid,
        notes=notes,
    )
