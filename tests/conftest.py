import pytest

from tests.helpers import FakeCodec


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec(ratio=0.5)
