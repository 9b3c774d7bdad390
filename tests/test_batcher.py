"""测试分批."""

import pytest

from feeddigest.core.batcher import make_batches


class TestMakeBatches:
    """测试 make_batches."""

    def test_remainder_is_not_batched(self) -> None:
        """25 篇 / 批次 10 -> 2 批，剩 5 篇."""
        batches, remainder = make_batches(list(range(25)), 10)
        assert len(batches) == 2
        assert all(len(batch) == 10 for batch in batches)
        assert remainder == [20, 21, 22, 23, 24]

    def test_order_is_preserved(self) -> None:
        """按原顺序切分."""
        batches, _ = make_batches(["a", "b", "c", "d"], 2)
        assert batches == [["a", "b"], ["c", "d"]]

    def test_exact_multiple_has_empty_remainder(self) -> None:
        """整除时没有剩余."""
        batches, remainder = make_batches(list(range(20)), 10)
        assert len(batches) == 2
        assert remainder == []

    def test_fewer_than_batch_size(self) -> None:
        """不足一批时没有批次."""
        batches, remainder = make_batches([1, 2, 3], 10)
        assert batches == []
        assert remainder == [1, 2, 3]

    def test_batch_size_one(self) -> None:
        """批次大小为 1 时每篇一批."""
        batches, remainder = make_batches([1, 2, 3], 1)
        assert batches == [[1], [2], [3]]
        assert remainder == []

    @pytest.mark.parametrize("batch_size", [0, -1])
    def test_invalid_batch_size(self, batch_size: int) -> None:
        """批次大小 < 1 时抛出 ValueError."""
        with pytest.raises(ValueError):
            make_batches([1, 2], batch_size)
