"""API router subpackage for the map viewer backend.

Each module exposes its own APIRouter for composition in the application's
main FastAPI instance.

Submodules:
    - map: The map configuration of viewer applications.
"""
