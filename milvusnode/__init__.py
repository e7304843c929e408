"""milvusnode package: awaitable Milvus client + CLI."""
from .client import *  # noqa: F401,F403
from .protocol import *  # noqa: F401,F403
from .rpc import *  # noqa: F401,F403
from .types import *  # noqa: F401,F403

__all__ = [name for name in globals() if not name.startswith("_")]
