from django.urls import path
from .views import (
    AdminOrderRetryView,
    AdminRetryFailedView,
    AdminFulfillmentAttemptsView,
    AdminFulfillmentStatsView,
)

admin_urlpatterns = [
    path('orders/<uuid:id>/retry', AdminOrderRetryView.as_view(), name='admin-orders-retry'),
    path('orders/<uuid:id>/retry/', AdminOrderRetryView.as_view(), name='admin-orders-retry-slash'),
    path('fulfillment/retry-failed', AdminRetryFailedView.as_view(), name='admin-fulfillment-retry-failed'),
    path('fulfillment/retry-failed/', AdminRetryFailedView.as_view(), name='admin-fulfillment-retry-failed-slash'),
    path('fulfillment/attempts', AdminFulfillmentAttemptsView.as_view(), name='admin-fulfillment-attempts'),
    path('fulfillment/attempts/', AdminFulfillmentAttemptsView.as_view(), name='admin-fulfillment-attempts-slash'),
    path('fulfillment/stats', AdminFulfillmentStatsView.as_view(), name='admin-fulfillment-stats'),
    path('fulfillment/stats/', AdminFulfillmentStatsView.as_view(), name='admin-fulfillment-stats-slash'),
]
