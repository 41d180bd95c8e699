"""
URL configuration for dynafield_project.

    /admin/                  Django admin
    /core/dynamic_fields/    Dynamic field configurations, values and search
    /core/html_safety/       HTML safety filter
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('core/', include('core.urls')),
    path('api-auth/', include('rest_framework.urls')),
]
