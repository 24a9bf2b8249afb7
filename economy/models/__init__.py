from economy.models.wallet import Wallet
from economy.models.nft import NFT, NFTLike
from economy.models.bid import Bid
from economy.models.nft_transaction import NFTTransaction
from economy.models.game_round import GameRound

__all__ = [
    "Wallet",
    "NFT",
    "NFTLike",
    "Bid",
    "NFTTransaction",
    "GameRound",
]
