import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from economy.exceptions import InsufficientFundsError, InvalidArgumentError
from economy.models import NFT, NFTTransaction, Wallet
from economy.services.ledger import record_nft_transaction
from economy.services.money import money_exceeds, to_money
from economy.services.wallet import WalletService

logger = logging.getLogger(__name__)

MINT_COST = getattr(settings, "MARKETPLACE_MINT_COST", Decimal("100.00"))
MAX_NAME_LENGTH = 255


def normalize_tags(tags):
    """Accept a list of tags or a comma-separated string; drop blanks."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    elif not isinstance(tags, (list, tuple)):
        raise InvalidArgumentError("Tags must be a list or a comma-separated string.")
    return [str(tag).strip() for tag in tags if str(tag).strip()]


class MintService:
    """Creates new NFTs, charging the creator the fixed mint cost in Agon."""

    @staticmethod
    @transaction.atomic
    def mint(
        creator_id,
        name,
        image_ref,
        description=None,
        category=NFT.Category.OTHER,
        tags=None,
        edition_number=1,
        edition_total=1,
    ) -> NFT:
        """
        Mint an NFT owned by its creator.

        Args:
            creator_id: User paying for and owning the new NFT.
            name: Display name, 1-255 characters after trimming.
            image_ref: Reference to the already-stored image.
            description: Optional free text.
            category: One of NFT.Category; defaults to OTHER.
            tags: List or comma-separated string of tags.
            edition_number / edition_total: 1 <= number <= total.

        Returns:
            The created NFT.

        Raises:
            InvalidArgumentError: On a bad name, image, category or edition.
            InsufficientFundsError: If the creator cannot pay the mint cost.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidArgumentError("NFT name is required.")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidArgumentError(
                f"NFT name must be {MAX_NAME_LENGTH} characters or less."
            )
        if not image_ref:
            raise InvalidArgumentError("Image is required.")

        category = category or NFT.Category.OTHER
        if category not in NFT.Category.values:
            raise InvalidArgumentError(f"Unknown category: {category}.")

        edition_number = int(edition_number or 1)
        edition_total = int(edition_total or 1)
        if edition_number < 1 or edition_total < 1 or edition_number > edition_total:
            raise InvalidArgumentError(
                "Edition number must be between 1 and the edition total."
            )

        wallet = WalletService.get_wallet(creator_id, lock=True)
        if money_exceeds(MINT_COST, wallet.agon):
            raise InsufficientFundsError(
                f"Insufficient Agon balance. Minting costs {MINT_COST} Agon."
            )
        WalletService.debit(creator_id, MINT_COST, Wallet.Currency.AGON)

        nft = NFT.objects.create(
            creator_id=creator_id,
            current_owner_id=creator_id,
            name=name,
            description=(description or "").strip() or None,
            image_ref=image_ref,
            category=category,
            tags=normalize_tags(tags),
            edition_number=edition_number,
            edition_total=edition_total,
            mint_price=to_money(MINT_COST),
        )

        record_nft_transaction(
            nft,
            NFTTransaction.TransactionType.MINT,
            to_user_id=creator_id,
            amount=to_money(MINT_COST),
            net_amount=to_money(MINT_COST),
            notes="NFT minted",
        )

        logger.info(
            "NFT minted: nft=%s creator=%s name=%s cost=%s",
            nft.pk,
            creator_id,
            name,
            MINT_COST,
        )
        return nft
