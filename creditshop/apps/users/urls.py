from django.urls import path

from .wallet_views import WalletBalanceView, WalletTransactionsView


urlpatterns = [
    path("wallet/balance", WalletBalanceView.as_view(), name="wallet-balance"),
    path("wallet/balance/", WalletBalanceView.as_view(), name="wallet-balance-slash"),
    path("wallet/transactions", WalletTransactionsView.as_view(), name="wallet-transactions"),
    path("wallet/transactions/", WalletTransactionsView.as_view(), name="wallet-transactions-slash"),
]
