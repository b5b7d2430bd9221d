"""
Shared, cross-cutting code for the API.

`core/` holds the pieces every resource uses: DB pool and query helpers,
settings, validation, list filters and page metadata, JSON envelopes, error
responses and middleware. Resource-specific SQL and routes live in their
feature package (e.g. `records/`).
"""
