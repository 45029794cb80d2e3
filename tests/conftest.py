from typing import List, Optional, Tuple

import pytest

from studydoc.docs.buffer import BufferManager
from studydoc.docs.convert import Renderer
from studydoc.errors import RendererError


class FakeRenderer(Renderer):
    """Records calls; writes `output` on success or raises `error`."""

    def __init__(self, name: str, output: Optional[bytes] = None, error: Optional[Exception] = None):
        self.name = name
        self.output = output
        self.error = error
        self.calls: List[Tuple[str, str]] = []
        self.seen_input: Optional[bytes] = None

    async def render(self, input_path, output_path, timeout):
        self.calls.append((input_path, output_path))
        with open(input_path, "rb") as f:
            self.seen_input = f.read()
        if self.error is not None:
            raise self.error
        if self.output is not None:
            with open(output_path, "wb") as f:
                f.write(self.output)


@pytest.fixture
def make_renderer():
    def factory(name, output=None, fail=False, error=None):
        if fail and error is None:
            error = RendererError(name, "exited with code 1")
        return FakeRenderer(name, output=output, error=error)

    return factory


@pytest.fixture
def buffer(tmp_path):
    return BufferManager(str(tmp_path / "jobs"))
