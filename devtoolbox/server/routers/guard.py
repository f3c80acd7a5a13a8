"""Translate unexpected exceptions from the core into SERVER_ERROR."""

import inspect
import logging

from devtoolbox.errors import DevToolboxError, ServerError

logger = logging.getLogger(__name__)


async def guarded(fn, *args, **kwargs):
    """Call a manager/registry operation, awaiting it if needed.

    Classified errors pass through untouched; anything else becomes a
    ServerError carrying the original message.
    """
    try:
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
    except DevToolboxError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in {getattr(fn, '__name__', fn)}")
        raise ServerError(str(e) or type(e).__name__) from e
