import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Compensation:
    """
    Ordered cleanup actions for a multi-step operation that spans stores
    without a shared transaction.

    Register an undo action right after each step succeeds. If the block
    exits with an exception the actions run in reverse order and the original
    exception propagates; failures inside an action are logged and swallowed.
    A clean exit discards every registered action.

        with Compensation() as compensation:
            url = storage.upload(file, "products")
            compensation.register(storage.delete, url)
            db.commit()
    """

    def __init__(self, name: str = "operation"):
        self.name = name
        self._actions: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def register(self, action: Callable[..., Any], *args: Any) -> None:
        self._actions.append((action, args))

    def __enter__(self) -> "Compensation":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.run()
        self._actions.clear()
        return False

    def run(self) -> None:
        while self._actions:
            action, args = self._actions.pop()
            try:
                action(*args)
            except Exception:
                logger.exception("Compensation step %r failed for %s", action, self.name)
