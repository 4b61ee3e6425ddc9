from django.urls import path
from .views import (
    OrdersCreateView,
    MyOrdersListView,
    MyOrderDetailsView,
    AdminOrdersListView,
    AdminReviewQueueView,
    AdminOrderDetailsView,
    AdminOrderConfirmView,
    AdminOrderCancelView,
)

urlpatterns = [
    path('orders', OrdersCreateView.as_view(), name='orders-create'),
    path('orders/', OrdersCreateView.as_view(), name='orders-create-slash'),
    path('orders/me', MyOrdersListView.as_view(), name='orders-me'),
    path('orders/me/', MyOrdersListView.as_view(), name='orders-me-slash'),
    path('orders/<uuid:id>', MyOrderDetailsView.as_view(), name='orders-details'),
    path('orders/<uuid:id>/', MyOrderDetailsView.as_view(), name='orders-details-slash'),
]

# Admin routes are included at root include with prefix 'admin/' in config urls
admin_urlpatterns = [
    # Accept both with and without trailing slash for robustness with frontend normalization
    path('orders', AdminOrdersListView.as_view(), name='admin-orders-list'),
    path('orders/', AdminOrdersListView.as_view(), name='admin-orders-list-slash'),
    path('orders/review-queue', AdminReviewQueueView.as_view(), name='admin-orders-review-queue'),
    path('orders/review-queue/', AdminReviewQueueView.as_view(), name='admin-orders-review-queue-slash'),
    path('orders/<uuid:id>', AdminOrderDetailsView.as_view(), name='admin-orders-by-id'),
    path('orders/<uuid:id>/', AdminOrderDetailsView.as_view(), name='admin-orders-by-id-slash'),
    path('orders/<uuid:id>/confirm', AdminOrderConfirmView.as_view(), name='admin-orders-confirm'),
    path('orders/<uuid:id>/confirm/', AdminOrderConfirmView.as_view(), name='admin-orders-confirm-slash'),
    path('orders/<uuid:id>/cancel', AdminOrderCancelView.as_view(), name='admin-orders-cancel'),
    path('orders/<uuid:id>/cancel/', AdminOrderCancelView.as_view(), name='admin-orders-cancel-slash'),
]
