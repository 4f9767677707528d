"""Sequential composition of independent awaitables."""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from loguru import logger

_UNSET = object()


def _log_values(*values: Any) -> None:
    logger.info(" ".join(repr(v) for v in values))


async def chain_in_order(
    steps: Iterable[Awaitable[Any]],
    observe: Callable[..., None] = _log_values,
    *,
    alongside_first: Any = _UNSET,
    on_error: Callable[[BaseException], None] | None = None,
) -> list[Any]:
    """Await ``steps`` one after another and observe each value in order.

    ``alongside_first`` is an unrelated value reported together with the
    first step only; it never changes the order of the chained values.

    If a step raises, the chain stops. The error goes to ``on_error`` when
    given, otherwise it propagates.

    Returns:
        The values observed before the chain finished or stopped
    """
    values: list[Any] = []
    try:
        for index, step in enumerate(steps):
            value = await step
            if index == 0 and alongside_first is not _UNSET:
                observe(value, alongside_first)
            else:
                observe(value)
            values.append(value)
    except Exception as e:
        if on_error is None:
            raise
        on_error(e)
    return values
