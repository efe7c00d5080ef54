"""User context backed by a ContextVar."""

from contextvars import ContextVar, Token

current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


class ContextVarUserContext:
    """Reads the user id set for the current task (e.g. by request middleware)."""

    def get_id_or_none(self) -> str | None:
        return current_user_id.get()

    def set_id(self, user_id: str | None) -> Token:
        return current_user_id.set(user_id)

    def reset(self, token: Token) -> None:
        current_user_id.reset(token)
