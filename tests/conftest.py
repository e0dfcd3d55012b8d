import pytest

from intervue.interview.testing import ManualTimer


@pytest.fixture(autouse=True)
def reset_manual_timers():
    ManualTimer.instances.clear()
    yield
    ManualTimer.instances.clear()
