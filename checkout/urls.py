from django.urls import path

from . import views

urlpatterns = [
    # Serverless-style checkout functions
    path('functions/create-checkout-session/', views.create_checkout_session, name='create-checkout-session'),
    path('functions/stripe-webhook/', views.stripe_webhook, name='stripe-webhook'),
    path('functions/health/', views.health, name='checkout-health'),

    # Confirmation / track order
    path('success/', views.OrderConfirmationView.as_view(), name='order-confirmation'),
    path('api/orders/<str:order_id>/', views.OrderDetailView.as_view(), name='order-detail'),
]
