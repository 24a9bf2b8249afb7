from django.conf import settings
from django.db import models


class NFT(models.Model):
    """
    A collectible asset. The row itself is the ownership record.

    Listing state is a pair: is_listed is true exactly when ask_price is set.
    Ownership moves only through an accepted bid or an instant buy.
    """

    class Category(models.TextChoices):
        NATION_FLAGS = "nation_flags", "Nation Flags & Emblems"
        NOTABLE_BUILDS = "notable_builds", "Notable Builds"
        MEMES_MOMENTS = "memes_moments", "Memes & Moments"
        PLAYER_AVATARS = "player_avatars", "Player Avatars"
        EVENT_COMMEMORATIONS = "event_commemorations", "Event Commemorations"
        ACHIEVEMENT_BADGES = "achievement_badges", "Achievement Badges"
        MAP_ART = "map_art", "Map Art"
        HISTORICAL_DOCUMENTS = "historical_documents", "Historical Documents"
        OTHER = "other", "Other"

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_nfts",
    )
    current_owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_nfts",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    image_ref = models.CharField(
        max_length=500,
        help_text="Reference to the image in the external object store.",
    )
    category = models.CharField(
        max_length=32, choices=Category.choices, default=Category.OTHER
    )
    tags = models.JSONField(default=list, blank=True)
    edition_number = models.PositiveIntegerField(default=1)
    edition_total = models.PositiveIntegerField(default=1)
    mint_price = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    is_listed = models.BooleanField(default=False)
    ask_price = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    like_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)
    minted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    listed_at = models.DateTimeField(null=True, blank=True)
    last_traded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "nfts"
        ordering = ["-minted_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(is_listed=True, ask_price__isnull=False)
                    | models.Q(is_listed=False, ask_price__isnull=True)
                ),
                name="nft_listing_has_ask_price",
            ),
            models.CheckConstraint(
                condition=models.Q(edition_number__lte=models.F("edition_total")),
                name="nft_edition_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["is_listed", "category"], name="idx_nft_listed_category"),
            models.Index(fields=["current_owner"], name="idx_nft_owner"),
        ]

    def __str__(self):
        return f"NFT {self.id} | {self.name} | owner={self.current_owner_id}"


class NFTLike(models.Model):
    """One like per (user, NFT); NFT.like_count mirrors the number of rows."""

    nft = models.ForeignKey(NFT, on_delete=models.CASCADE, related_name="likes")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="nft_likes"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "nft_likes"
        constraints = [
            models.UniqueConstraint(fields=["nft", "user"], name="uniq_nft_like"),
        ]
