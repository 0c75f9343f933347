from django.urls import path
from .views import client_list_create, client_detail, client_buildings, client_summary

urlpatterns = [
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),
    path('clients/<int:pk>/buildings/', client_buildings, name='client-buildings'),
    path('clients/<int:pk>/summary/', client_summary, name='client-summary'),
]
