import pytest

from tests.fakes import sample_engine


@pytest.fixture
def engine():
    """Fake engine over the six-commit sample graph, working copy "wc"."""
    return sample_engine()
