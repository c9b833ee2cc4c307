"""Map chat errors onto HTTP responses."""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from therapy_chat.errors import (
    InvalidMessage,
    ReplyProviderError,
    SessionNotFound,
    StoreUnavailable,
    Unauthenticated,
    UserNotFound,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_chat_errors(func: F) -> F:
    """
    Decorator turning chat errors into HTTPExceptions.

    Not-found and forbidden are the same 404 so callers cannot probe for
    other users' sessions.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except Unauthenticated as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

        except InvalidMessage as e:
            logger.info(f"Rejected message for session {e.session_id}: {e.message}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

        except (SessionNotFound, UserNotFound) as e:
            logger.info(f"Not found: {e.message} (session={e.session_id})")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

        except ReplyProviderError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error processing message: {e.message}",
            )

        except StoreUnavailable as e:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    return wrapper  # type: ignore[return-value]
