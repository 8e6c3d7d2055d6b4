import pytest

from hcloud_driver.utils.async_retry import async_retry


@pytest.mark.asyncio
async def test_retries_selected_errors_until_success():
    calls = []

    @async_retry(retries=3, delay=0, retry_on=(ConnectionError,))
    async def flaky() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_gives_up_after_last_attempt():
    calls = []

    @async_retry(retries=2, delay=0, retry_on=(ConnectionError,), noisy=True)
    async def down() -> None:
        calls.append(1)
        raise ConnectionError("refused")

    with pytest.raises(ConnectionError):
        await down()
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = []

    @async_retry(retries=5, delay=0, retry_on=(ConnectionError,))
    async def broken() -> None:
        calls.append(1)
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await broken()
    assert len(calls) == 1
