from django.urls import path
from . import views

urlpatterns = [
    path('', views.html_safety, name='html-safety'),
]
