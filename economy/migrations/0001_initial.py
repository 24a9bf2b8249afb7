import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("agon", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("game_chips", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="wallet",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "wallets",
                "ordering": ["-created_at"],
                "abstract": False,
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("agon__gte", 0)),
                        name="wallet_agon_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("game_chips__gte", 0)),
                        name="wallet_game_chips_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NFT",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                (
                    "image_ref",
                    models.CharField(
                        help_text="Reference to the image in the external object store.",
                        max_length=500,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("nation_flags", "Nation Flags & Emblems"),
                            ("notable_builds", "Notable Builds"),
                            ("memes_moments", "Memes & Moments"),
                            ("player_avatars", "Player Avatars"),
                            ("event_commemorations", "Event Commemorations"),
                            ("achievement_badges", "Achievement Badges"),
                            ("map_art", "Map Art"),
                            ("historical_documents", "Historical Documents"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=32,
                    ),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("edition_number", models.PositiveIntegerField(default=1)),
                ("edition_total", models.PositiveIntegerField(default=1)),
                ("mint_price", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("is_listed", models.BooleanField(default=False)),
                ("ask_price", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("like_count", models.PositiveIntegerField(default=0)),
                ("view_count", models.PositiveIntegerField(default=0)),
                ("minted_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("listed_at", models.DateTimeField(blank=True, null=True)),
                ("last_traded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_nfts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "current_owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="owned_nfts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "nfts",
                "ordering": ["-minted_at"],
                "indexes": [
                    models.Index(fields=["is_listed", "category"], name="idx_nft_listed_category"),
                    models.Index(fields=["current_owner"], name="idx_nft_owner"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("ask_price__isnull", False), ("is_listed", True)),
                            models.Q(("ask_price__isnull", True), ("is_listed", False)),
                            _connector="OR",
                        ),
                        name="nft_listing_has_ask_price",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("edition_number__lte", models.F("edition_total"))),
                        name="nft_edition_within_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NFTLike",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "nft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="likes",
                        to="economy.nft",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="nft_likes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "nft_likes",
                "constraints": [
                    models.UniqueConstraint(fields=("nft", "user"), name="uniq_nft_like"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Bid",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("bid_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("cancelled", "Cancelled"),
                            ("accepted", "Accepted"),
                        ],
                        default="active",
                        max_length=10,
                    ),
                ),
                (
                    "bidder",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="nft_bids",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "nft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bids",
                        to="economy.nft",
                    ),
                ),
            ],
            options={
                "db_table": "nft_bids",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["nft", "status"], name="idx_bid_nft_status"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("nft", "bidder"),
                        name="uniq_active_bid_per_bidder",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NFTTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("fee", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("net_amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("mint", "Mint"),
                            ("list", "List"),
                            ("unlist", "Unlist"),
                            ("sale", "Sale"),
                            ("bid_accepted", "Bid accepted"),
                        ],
                        max_length=16,
                    ),
                ),
                ("notes", models.CharField(blank=True, default="", max_length=255)),
                (
                    "bid",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="economy.bid",
                    ),
                ),
                (
                    "from_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="nft_transactions_sent",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "nft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="economy.nft",
                    ),
                ),
                (
                    "to_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="nft_transactions_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "nft_transactions",
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["nft", "created_at"], name="idx_nft_tx_created"),
                    models.Index(fields=["transaction_type"], name="idx_nft_tx_type"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GameRound",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "game_type",
                    models.CharField(
                        choices=[("coinflip", "Coin flip"), ("crash", "Crash")],
                        max_length=16,
                    ),
                ),
                ("bet_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("choice", models.JSONField()),
                ("result", models.CharField(max_length=32)),
                ("won", models.BooleanField()),
                ("amount_change", models.DecimalField(decimal_places=2, max_digits=18)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="game_rounds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "game_history",
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["user", "game_type"], name="idx_game_user_type"),
                ],
            },
        ),
    ]
