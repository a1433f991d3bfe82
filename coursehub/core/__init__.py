from coursehub.core.postgres import Base, get_async_session_factory, make_session_factory
from coursehub.core.roles import Role

__all__ = [
    "Base",
    "get_async_session_factory",
    "make_session_factory",
    "Role",
]
