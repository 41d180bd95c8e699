"""
URL Configuration for Core module.
This module routes the shared infrastructure apps: dynamic fields and the
HTML safety filter.
"""
from django.urls import path, include

app_name = 'core'

urlpatterns = [
    # Dynamic field configurations, values and search
    path('dynamic_fields/', include('core.dynamic_field.urls')),

    # HTML safety filter
    path('html_safety/', include('core.html_safety.urls')),
]
