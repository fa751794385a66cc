from collections.abc import Iterator

import pytest

from forkpath.devmode.EditContext import default_context


@pytest.fixture(autouse=True)
def restore_default_context() -> Iterator[None]:
    """Tests may toggle dev mode on the process default; put it back afterwards."""
    context = default_context()
    saved = (context.dev_mode, context.production)
    yield
    context.dev_mode, context.production = saved
