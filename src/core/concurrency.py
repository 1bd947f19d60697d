"""Small asyncio helpers shared by the fetch and branch steps."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable, List, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


async def gather_settled(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    """Run awaitables concurrently and return the results that succeeded.

    A failing awaitable never cancels its siblings; each failure is logged as
    a warning and dropped from the result.
    """

    results = await asyncio.gather(*awaitables, return_exceptions=True)
    settled: List[T] = []
    for result in results:
        if isinstance(result, BaseException):
            if isinstance(result, (KeyboardInterrupt, SystemExit)):
                raise result
            LOGGER.warning("%s", result)
            continue
        settled.append(result)
    return settled
