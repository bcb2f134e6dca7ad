from . import previews

routers = [
    previews.router,
]

__all__ = [
    "routers",
]
