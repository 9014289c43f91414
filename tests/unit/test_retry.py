import pytest

from planquota.exceptions import TransientStoreError
from planquota.utils.retry import retry


@pytest.mark.unit
class TestRetry:
    async def test_retry_succeeds_on_first_try(self) -> None:
        call_count = 0

        @retry(max_attempts=3, delay_ms=10)
        async def succeed() -> str:
            nonlocal call_count
            call_count += 1
            return "ok"

        assert await succeed() == "ok"
        assert call_count == 1

    async def test_retry_succeeds_after_transient_failure(self) -> None:
        call_count = 0

        @retry(max_attempts=3, delay_ms=1)
        async def fail_then_succeed() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise TransientStoreError("not yet")
            return "ok"

        assert await fail_then_succeed() == "ok"
        assert call_count == 3

    async def test_retry_exhausted_raises(self) -> None:
        @retry(max_attempts=2, delay_ms=1)
        async def always_fail() -> str:
            raise TransientStoreError("down")

        with pytest.raises(TransientStoreError, match="down"):
            await always_fail()

    async def test_other_errors_not_retried(self) -> None:
        call_count = 0

        @retry(max_attempts=3, delay_ms=1)
        async def broken() -> str:
            nonlocal call_count
            call_count += 1
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await broken()
        assert call_count == 1
