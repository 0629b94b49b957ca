"""Backend of the map viewer configuration service.

This package serves the map configuration of viewer applications: for an
application and the requesting user it resolves the layer trees, the
cascaded layer settings, legends, proxy URLs and the projection into the map
response the viewer starts from. Configuration is read from PostgreSQL or a
JSON snapshot and is never modified.

- db: configuration snapshot models and repositories
- services: settings cascade, layer tree resolution and authorization
- api: the HTTP endpoints

See module sub-docstrings for details.
"""
