from django.contrib import admin

from economy.models import NFT, Bid, GameRound, NFTTransaction, Wallet


class ReadOnlyAdminMixin:
    """
    Mixin that makes an admin model completely read-only.

    Balances, ownership and the audit tables change only through the
    services, so the admin panel is for browsing.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "user", "agon", "game_chips", "updated_at")
    search_fields = ("user__username",)


@admin.register(NFT)
class NFTAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "category",
        "creator",
        "current_owner",
        "is_listed",
        "ask_price",
        "like_count",
        "view_count",
        "minted_at",
    )
    list_filter = ("category", "is_listed")
    search_fields = ("name", "creator__username", "current_owner__username")


@admin.register(Bid)
class BidAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "nft", "bidder", "bid_amount", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("bidder__username", "nft__name")


@admin.register(NFTTransaction)
class NFTTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "nft",
        "transaction_type",
        "from_user",
        "to_user",
        "amount",
        "fee",
        "net_amount",
        "created_at",
    )
    list_filter = ("transaction_type",)
    search_fields = ("nft__name",)


@admin.register(GameRound)
class GameRoundAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "game_type",
        "bet_amount",
        "result",
        "won",
        "amount_change",
        "created_at",
    )
    list_filter = ("game_type", "won")
    search_fields = ("user__username",)
