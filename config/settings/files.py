from config.env import BASE_DIR, env, env_get, env_to_enum
from src.documents.enums import FileUploadStorage

# local | s3 (any S3 compatible bucket, e.g. Cloudflare R2)
FILE_UPLOAD_STORAGE = env_to_enum(FileUploadStorage, env("FILE_UPLOAD_STORAGE", default="local"))

FILE_MAX_SIZE = env.int("FILE_MAX_SIZE", default=10 * 1024 * 1024)  # bytes
DATA_UPLOAD_MAX_MEMORY_SIZE = FILE_MAX_SIZE + 1024 * 1024

if FILE_UPLOAD_STORAGE == FileUploadStorage.LOCAL:
    MEDIA_ROOT_NAME = "media"
    MEDIA_ROOT = env("MEDIA_ROOT", default=str(BASE_DIR.path(MEDIA_ROOT_NAME)))
    MEDIA_URL = f"/{MEDIA_ROOT_NAME}/"
    STORAGES = {
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    }

if FILE_UPLOAD_STORAGE == FileUploadStorage.S3:
    AWS_S3_ACCESS_KEY_ID = env_get("AWS_S3_ACCESS_KEY_ID")
    AWS_S3_SECRET_ACCESS_KEY = env_get("AWS_S3_SECRET_ACCESS_KEY")
    AWS_STORAGE_BUCKET_NAME = env("AWS_STORAGE_BUCKET_NAME")
    AWS_S3_ENDPOINT_URL = env("AWS_S3_ENDPOINT_URL", default=None)
    AWS_S3_REGION_NAME = env("AWS_S3_REGION_NAME", default="auto")
    AWS_S3_SIGNATURE_VERSION = "s3v4"
    AWS_DEFAULT_ACL = None
    AWS_QUERYSTRING_AUTH = True
    AWS_QUERYSTRING_EXPIRE = env.int("AWS_PRESIGNED_EXPIRY", default=3600)  # seconds
    AWS_S3_FILE_OVERWRITE = False
    STORAGES = {
        "default": {"BACKEND": "storages.backends.s3.S3Storage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    }
