"""Business logic layer for resources app.

This package contains all business logic for the user namespace:
- Path validation and user-prefixed key mapping
- File upload, download, info and delete
- Directory create, list and recursive delete
- Move/rename, search and zip archives
- The facade that routes requests by path shape

Services receive their collaborators through ``__init__`` and keep no
per-request state, so a single set of instances serves every request.
"""
