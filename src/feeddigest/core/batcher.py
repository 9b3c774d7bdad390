"""按固定大小分批."""

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def make_batches(
    items: Sequence[T], batch_size: int
) -> tuple[list[list[T]], list[T]]:
    """
    从前往后按 batch_size 切分.

    Returns:
        (完整批次列表, 不足一批的剩余部分)
    """
    if batch_size < 1:
        msg = f"batch_size 必须 >= 1，当前为 {batch_size}"
        raise ValueError(msg)

    full = len(items) - len(items) % batch_size
    batches = [list(items[i : i + batch_size]) for i in range(0, full, batch_size)]
    return batches, list(items[full:])
