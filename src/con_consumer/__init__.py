from importlib.metadata import version
from .consumer_main import Consumer, execute, run

__version__ = version("con-consumer")


__all__ = [
    "Consumer",
    "execute",
    "run",
    "__version__",
]
