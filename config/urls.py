"""
URL configuration for the Inkwell publishing platform.

Public and editorial API routes live in the web tier; this project only
exposes the Django admin.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]

# Customize admin site
admin.site.site_header = 'Inkwell Administration'
admin.site.site_title = 'Inkwell Admin'
admin.site.index_title = 'Publishing'
