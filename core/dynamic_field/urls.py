from django.urls import path
from . import views

urlpatterns = [
    path('fields/', views.dynamic_field_list, name='dynamic-field-list'),
    path('fields/<int:pk>/', views.dynamic_field_detail, name='dynamic-field-detail'),
    path(
        'fields/<int:pk>/values/<int:object_id>/',
        views.dynamic_field_value_detail,
        name='dynamic-field-value-detail'
    ),
    path('fields/<int:pk>/search/', views.dynamic_field_search, name='dynamic-field-search'),
]
