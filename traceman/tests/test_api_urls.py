"""
URL configuration for Traceman API tests.

Used as ROOT_URLCONF in test settings via @pytest.mark.urls.
"""

from django.urls import include, path

urlpatterns = [
    path("api/traceman/", include("traceman.api.urls")),
]
