#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from valuedump.render import RenderOptions


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def plain() -> RenderOptions:
    """Default options without the trailing line break, for exact string comparison."""
    return RenderOptions(newline_at_end=False)


@pytest.fixture
def sink():
    """List-backed sink collecting every forwarded part, exposed as sink.parts."""

    class _Sink:
        def __init__(self):
            self.parts = []

        def __call__(self, *parts):
            self.parts.extend(parts)

    return _Sink()
