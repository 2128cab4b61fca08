"""
URL configuration for server project.

  /upload_csv                 multipart CSV upload (field `csv`)
  /api/programmes/upload      same, under the API prefix
  /api/programmes/status      last ingestion summary
  /api/events/storage         Cloud Storage object-change notifications
  /api/search                 subject search index lookup
  /api/auth/                  user provisioning
"""
from django.urls import include, path

from programmes import api as programmes_api
from system.views import health

urlpatterns = [
    path('_health/', health, name='health'),
    path('_health', health, name='health_no_slash'),
    path('upload_csv', programmes_api.upload_csv, name='upload_csv'),
    path('api/programmes/upload', programmes_api.upload_csv, name='api_programmes_upload'),
    path('api/programmes/status', programmes_api.ingest_status, name='api_programmes_status'),
    path('api/events/storage', programmes_api.storage_event, name='api_storage_event'),
    path('api/search', programmes_api.search, name='api_search'),
    path('api/auth/', include('accounts.urls')),
]
