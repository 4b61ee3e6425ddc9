from django.urls import path
from .views import (
    TopUpsView,
    MyTopUpsListView,
    AdminTopUpsListView,
    AdminTopUpApproveView,
    AdminTopUpRejectView,
)

urlpatterns = [
    path('topups', TopUpsView.as_view(), name='topups'),
    path('topups/', TopUpsView.as_view(), name='topups-slash'),
    path('topups/me', MyTopUpsListView.as_view(), name='topups-me'),
    path('topups/me/', MyTopUpsListView.as_view(), name='topups-me-slash'),
]

# Admin routes
admin_urlpatterns = [
    path('topups', AdminTopUpsListView.as_view(), name='admin-topups-list'),
    path('topups/', AdminTopUpsListView.as_view(), name='admin-topups-list-slash'),
    path('topups/<uuid:id>/approve', AdminTopUpApproveView.as_view(), name='admin-topups-approve'),
    path('topups/<uuid:id>/approve/', AdminTopUpApproveView.as_view(), name='admin-topups-approve-slash'),
    path('topups/<uuid:id>/reject', AdminTopUpRejectView.as_view(), name='admin-topups-reject'),
    path('topups/<uuid:id>/reject/', AdminTopUpRejectView.as_view(), name='admin-topups-reject-slash'),
]
