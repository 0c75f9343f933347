from django.urls import path
from .views import (
    order_list_submit, order_quote, order_detail, order_status, order_items,
    order_duplicate, order_statuses, order_summary,
)

urlpatterns = [
    path('orders/', order_list_submit, name='order-list-submit'),
    path('orders/quote/', order_quote, name='order-quote'),
    path('orders/statuses/', order_statuses, name='order-statuses'),
    path('orders/summary/', order_summary, name='order-summary'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('orders/<int:pk>/items/', order_items, name='order-items'),
    path('orders/<int:pk>/duplicate/', order_duplicate, name='order-duplicate'),
]
