"""
Shared dependencies across the application.

The repository is created by the application lifespan and attached to
``app.state``; handlers receive it through ``get_storage`` so tests can
swap in their own instance.
"""

from fastapi import Request

from app.storage import Storage


def get_storage(request: Request) -> Storage:
    """Dependency returning the repository bound to the running application."""
    return request.app.state.storage
