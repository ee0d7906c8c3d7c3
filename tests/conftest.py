import pytest

from fakes import FlatCamera


@pytest.fixture
def camera():
    return FlatCamera()
