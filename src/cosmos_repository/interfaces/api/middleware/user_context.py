"""User context middleware - exposes the request user to audit records."""

import falcon.asgi

from cosmos_repository.infrastructure.user_context.context_var_user_context import (
    ContextVarUserContext,
)

USER_ID_HEADER = "X-User-Id"


class UserContextMiddleware:
    """Sets the ambient user id for the duration of a request.

    Uses `req.context.user.user_id` when an auth middleware set it,
    else the `X-User-Id` header.
    """

    def __init__(self, user_context: ContextVarUserContext) -> None:
        self._user_context = user_context

    async def process_request(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        user = getattr(req.context, "user", None)
        user_id = getattr(user, "user_id", None) or req.get_header(USER_ID_HEADER)
        req.context.user_id_token = self._user_context.set_id(user_id)

    async def process_response(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, resource, req_succeeded: bool
    ) -> None:
        token = getattr(req.context, "user_id_token", None)
        if token is not None:
            self._user_context.reset(token)
