from django.urls import path

from economy.views import (
    AcceptBidView,
    BuyNFTView,
    CancelBidView,
    CategoryListView,
    CoinflipView,
    CrashView,
    GameHistoryView,
    LikeNFTView,
    ListNFTView,
    MintNFTView,
    NFTDetailView,
    NFTListView,
    PlaceBidView,
    RetrieveWalletView,
    UnlistNFTView,
    UserCollectionView,
)

urlpatterns = [
    path("wallet/", RetrieveWalletView.as_view(), name="wallet-detail"),
    path("nfts/", NFTListView.as_view(), name="nft-list"),
    path("nfts/categories/", CategoryListView.as_view(), name="nft-categories"),
    path("nfts/mint/", MintNFTView.as_view(), name="nft-mint"),
    path("nfts/user/<int:user_id>/", UserCollectionView.as_view(), name="nft-user-collection"),
    path("nfts/bids/<int:bid_id>/", CancelBidView.as_view(), name="bid-cancel"),
    path("nfts/<int:id>/", NFTDetailView.as_view(), name="nft-detail"),
    path("nfts/<int:id>/list/", ListNFTView.as_view(), name="nft-list-for-sale"),
    path("nfts/<int:id>/unlist/", UnlistNFTView.as_view(), name="nft-unlist"),
    path("nfts/<int:id>/bid/", PlaceBidView.as_view(), name="nft-bid"),
    path("nfts/<int:id>/accept-bid/", AcceptBidView.as_view(), name="nft-accept-bid"),
    path("nfts/<int:id>/buy/", BuyNFTView.as_view(), name="nft-buy"),
    path("nfts/<int:id>/like/", LikeNFTView.as_view(), name="nft-like"),
    path("games/coinflip/", CoinflipView.as_view(), name="game-coinflip"),
    path("games/crash/", CrashView.as_view(), name="game-crash"),
    path("games/history/", GameHistoryView.as_view(), name="game-history"),
]
