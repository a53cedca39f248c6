import asyncio

import pytest

from typesense_service.core.debounce import Debouncer


class CountingOperation:
    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.result


@pytest.mark.asyncio
async def test_burst_executes_only_last_operation():
    debouncer = Debouncer(0.02)
    first, second, last = CountingOperation("a"), CountingOperation("b"), CountingOperation("c")

    results = await asyncio.gather(
        debouncer.run(first, key="products", fallback=list),
        debouncer.run(second, key="products", fallback=list),
        debouncer.run(last, key="products", fallback=list),
    )

    assert results == ["c", "c", "c"]
    assert (first.calls, second.calls, last.calls) == (0, 0, 1)
    assert debouncer.execution_count == 1
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_calls_outside_the_window_both_execute():
    debouncer = Debouncer(0.01)

    assert await debouncer.run(CountingOperation(1), key="products", fallback=list) == 1
    assert await debouncer.run(CountingOperation(2), key="products", fallback=list) == 2
    assert debouncer.execution_count == 2


@pytest.mark.asyncio
async def test_other_key_supersedes_pending_burst():
    debouncer = Debouncer(0.02)
    products = CountingOperation(["p1"])
    categories = CountingOperation(["Clothing"])

    results = await asyncio.gather(
        debouncer.run(products, key="products", fallback=list),
        debouncer.run(categories, key="categories", fallback=list),
    )

    assert results == [[], ["Clothing"]]
    assert products.calls == 0
    assert categories.calls == 1


@pytest.mark.asyncio
async def test_failure_resolves_waiters_with_fallback():
    debouncer = Debouncer(0.01)

    async def failing():
        raise RuntimeError("search down")

    results = await asyncio.gather(
        debouncer.run(failing, key="products", fallback=list),
        debouncer.run(failing, key="products", fallback=dict),
    )

    assert results == [[], {}]


@pytest.mark.asyncio
async def test_cancel_releases_pending_callers():
    debouncer = Debouncer(10)
    operation = CountingOperation("never")

    task = asyncio.create_task(debouncer.run(operation, key="products", fallback=list))
    await asyncio.sleep(0)
    assert debouncer.pending

    debouncer.cancel()

    assert await task == []
    assert operation.calls == 0
    assert not debouncer.pending
