from functools import wraps
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Literal,
    ParamSpec,
    TypeVar,
)


def sign(n: int) -> Literal[-1, 1]:
    if n < 0:
        return -1
    if n > 0:
        return 1
    raise ValueError("Sign of 0 is undefined")


T = TypeVar("T")
P = ParamSpec("P")
R = TypeVar("R")

if TYPE_CHECKING:
    classonlymethod = classmethod[T, P, R]
else:

    class classonlymethod(classmethod):
        # Constructors like Word.atom are not meant to be reached through a word.
        def __get__(self, obj, cls=None):
            if obj is not None or cls is None:
                raise TypeError("Cannot call class-only method on instance")
            return super().__get__(obj, cls)


S = TypeVar("S", bound="Cached")

_MISSING = object()


class Cached:
    # Only for immutable objects: nothing ever invalidates the cache.
    def __init__(self):
        self._cache: Dict[str, Any] = {}

    def do_cached_method(self: S, method: Callable[[S], R]) -> R:
        result = self._cache.get(method.__name__, _MISSING)
        if result is _MISSING:
            result = method(self)
            self._cache[method.__name__] = result
        return result


def cached_value(func: Callable[[S], R]) -> Callable[[S], R]:
    @wraps(func)
    def wrap(self: S) -> R:
        return self.do_cached_method(func)

    return wrap
