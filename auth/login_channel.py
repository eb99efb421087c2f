from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Union

from auth.models import ResolvedUser

LoginHandler = Callable[[ResolvedUser], Union[Awaitable[None], None]]


class LoginChannel:
    """Single-slot subscription notified once per successful login."""

    def __init__(self) -> None:
        self._handler: LoginHandler | None = None

    @property
    def subscribed(self) -> bool:
        return self._handler is not None

    def subscribe(self, handler: LoginHandler) -> Callable[[], None]:
        if self._handler is not None:
            raise RuntimeError("Login channel already has a subscriber.")
        self._handler = handler

        def unsubscribe() -> None:
            if self._handler is handler:
                self._handler = None

        return unsubscribe

    async def publish(self, user: ResolvedUser) -> None:
        handler = self._handler
        if handler is None:
            return
        result = handler(user)
        if inspect.isawaitable(result):
            await result
