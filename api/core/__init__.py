"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks both features use (DB handle,
settings, logging, errors, upload staging). Feature-specific SQL and
business logic stay in `ads/` and `categories/`.
"""
