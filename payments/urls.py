from django.urls import path
from .views import AsyncPaymentCreateView, PaymentDetailView, PaymentListCreateView

app_name = 'payments'

urlpatterns = [
    # Synchronous create and listing
    path('', PaymentListCreateView.as_view(), name='payment-list'),

    # Queued creation
    path('async/', AsyncPaymentCreateView.as_view(), name='payment-async-create'),

    path('<uuid:id>/', PaymentDetailView.as_view(), name='payment-detail'),
]
