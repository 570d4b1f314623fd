# chat/ws_jwt.py

import logging
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from channels.db import database_sync_to_async
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from accounts.authentication import ActiveUserJWTAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_from_token(token: str):
    jwt_auth = ActiveUserJWTAuthentication()
    validated_token = jwt_auth.get_validated_token(token)
    return jwt_auth.get_user(validated_token)


class JwtAuthMiddleware(BaseMiddleware):
    """
    Accepts JWT token from:
    ws://.../ws/rooms/ROOM_ID/?token=JWT
    """
    async def __call__(self, scope, receive, send):
        scope["user"] = AnonymousUser()  # ALWAYS set default

        query_string = parse_qs(scope.get("query_string", b"").decode())
        token = query_string.get("token", [None])[0]

        if token:
            try:
                scope["user"] = await get_user_from_token(token)
            except (InvalidToken, TokenError, AuthenticationFailed) as e:
                logger.info("websocket token rejected: %s", e)

        return await super().__call__(scope, receive, send)
