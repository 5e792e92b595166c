from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path

from src.api.urls import api
from src.documents.enums import FileUploadStorage

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", api.urls),
]

if settings.DEBUG and settings.FILE_UPLOAD_STORAGE == FileUploadStorage.LOCAL:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
