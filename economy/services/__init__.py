from economy.services.wallet import WalletService
from economy.services.trading import SaleResult, TradingService
from economy.services.mint import MintService
from economy.services.engagement import EngagementService
from economy.services.games import GameService, RoundResult

__all__ = [
    "WalletService",
    "TradingService",
    "SaleResult",
    "MintService",
    "EngagementService",
    "GameService",
    "RoundResult",
]
