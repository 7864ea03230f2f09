"""Infrastructure layer for resources app.

This package contains integrations with external systems:
- The object store interface and its S3/MinIO/R2 implementation
- The django-storages backend that owns the S3 connection settings
- Metadata helpers (MIME type, archive names)

Keep infrastructure concerns separate from business logic.
"""
