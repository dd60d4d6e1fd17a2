"""Mix context for structured logging.

Records logged while an output container mixes carry the container id and
output path. The values travel in contextvars, so they follow the runner's
threads when those threads are started inside the context (see
FFmpegRunner, which copies the current context into its threads).
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_output_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "output_id", default=None
)
_output_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "output_path", default=None
)


@contextmanager
def mix_context(
    output_id: int, output_path: str | None = None
) -> Generator[None, None, None]:
    """Tag every record logged inside the block with the mixing output.

    Example:
        with mix_context(3, "/out/movie.mkv"):
            logger.info("Mix started")  # "[O3] ..." in text format
    """
    id_token = _output_id.set(output_id)
    path_token = _output_path.set(output_path)
    try:
        yield
    finally:
        _output_id.reset(id_token)
        _output_path.reset(path_token)


def get_mix_context() -> tuple[int | None, str | None]:
    """Return (output_id, output_path) of the current mix, either may be None."""
    return _output_id.get(), _output_path.get()


class MixContextFilter(logging.Filter):
    """Logging filter that injects mix context into log records.

    Adds output_id and output_path attributes, plus an ``output_tag`` like
    ``[O3] `` for the text format (empty outside a mix).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        output_id, output_path = get_mix_context()
        record.output_id = output_id
        record.output_path = output_path
        record.output_tag = f"[O{output_id}] " if output_id is not None else ""
        return True
