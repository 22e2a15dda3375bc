from django.urls import path

from . import adminviews, views

app_name = 'registrations'
urlpatterns = [
    path('', views.RegistrationListCreate.as_view(), name='list_create'),
    path('<int:pk>/cancel/', views.RegistrationCancel.as_view(), name='cancel'),
    path('admin/<int:pk>/edit/', adminviews.AdminRegistrationEdit.as_view(), name='admin_edit'),
    path('admin/<int:pk>/cancel/', adminviews.AdminRegistrationCancel.as_view(), name='admin_cancel'),
    path('admin/<int:pk>/audit/', adminviews.AdminRegistrationAudit.as_view(), name='admin_audit'),
]
