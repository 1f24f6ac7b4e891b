import pytest


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # Scoped throttles count requests per user id, and ids repeat between tests.
    from django.core.cache import cache

    cache.clear()
    yield
