"""Camp registration URL Configuration.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/4.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # enable the admin interface
    path('admin/', admin.site.urls),

    # Include urls of the apps
    path('registrations/', include('apps.registrations.urls')),
    path('payments/', include('apps.payments.urls')),
]
