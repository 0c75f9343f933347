"""
URL configuration for the ordering portal.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Lighting Portal Admin"
admin.site.site_title = "Lighting Portal Admin"
admin.site.index_title = "Clients, catalog and orders"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('portal.core.urls')),
    path('api/v1/', include('portal.clients.urls')),
    path('api/v1/', include('portal.catalog.urls')),
    path('api/v1/', include('portal.orders.urls')),
]
