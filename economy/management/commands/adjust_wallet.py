from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from economy.exceptions import EconomyError
from economy.models import Wallet
from economy.services import WalletService


class Command(BaseCommand):
    help = "Credit (positive amount) or debit (negative amount) a user's wallet"

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("amount", help="Signed amount, e.g. 250 or -40.50")
        parser.add_argument(
            "--currency",
            choices=Wallet.Currency.values,
            default=Wallet.Currency.AGON,
        )

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options["username"])
        except User.DoesNotExist:
            raise CommandError(f"User {options['username']!r} not found.")

        try:
            wallet = WalletService.adjust(user.pk, options["amount"], options["currency"])
        except EconomyError as exc:
            raise CommandError(f"{exc.kind.value}: {exc.message}")

        self.stdout.write(
            self.style.SUCCESS(
                f"{user.username}: agon={wallet.agon} game_chips={wallet.game_chips}"
            )
        )
