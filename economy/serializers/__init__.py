from economy.serializers.wallet import WalletSerializer
from economy.serializers.nft import (
    ListNFTSerializer,
    MintNFTSerializer,
    NFTFilterSerializer,
    NFTSerializer,
    NFTSummarySerializer,
)
from economy.serializers.bid import AcceptBidSerializer, BidSerializer, PlaceBidSerializer
from economy.serializers.transaction import NFTTransactionSerializer
from economy.serializers.game import (
    CoinflipSerializer,
    CrashSerializer,
    GameHistoryQuerySerializer,
    GameRoundSerializer,
)

__all__ = [
    "WalletSerializer",
    "NFTSerializer",
    "NFTSummarySerializer",
    "NFTFilterSerializer",
    "MintNFTSerializer",
    "ListNFTSerializer",
    "BidSerializer",
    "PlaceBidSerializer",
    "AcceptBidSerializer",
    "NFTTransactionSerializer",
    "CoinflipSerializer",
    "CrashSerializer",
    "GameRoundSerializer",
    "GameHistoryQuerySerializer",
]
