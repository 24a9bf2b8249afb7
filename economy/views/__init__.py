from economy.views.wallet import RetrieveWalletView
from economy.views.nft import (
    CategoryListView,
    LikeNFTView,
    MintNFTView,
    NFTDetailView,
    NFTListView,
    UserCollectionView,
)
from economy.views.trading import (
    AcceptBidView,
    BuyNFTView,
    CancelBidView,
    ListNFTView,
    PlaceBidView,
    UnlistNFTView,
)
from economy.views.game import CoinflipView, CrashView, GameHistoryView

__all__ = [
    "RetrieveWalletView",
    "NFTListView",
    "CategoryListView",
    "NFTDetailView",
    "UserCollectionView",
    "MintNFTView",
    "LikeNFTView",
    "ListNFTView",
    "UnlistNFTView",
    "PlaceBidView",
    "CancelBidView",
    "AcceptBidView",
    "BuyNFTView",
    "CoinflipView",
    "CrashView",
    "GameHistoryView",
]
