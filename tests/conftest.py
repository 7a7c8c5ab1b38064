import asyncio
import inspect


def pytest_pyfunc_call(pyfuncitem):
    """Run `async def` tests on a fresh event loop."""
    test_func = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_func):
        asyncio.run(test_func(**pyfuncitem.funcargs))
        return True
    return None
