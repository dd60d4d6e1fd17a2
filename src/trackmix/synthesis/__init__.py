"""ffmpeg argument synthesis."""

from trackmix.synthesis.command import (
    CHAPTERS_SENTINEL,
    InputGroup,
    MixCommand,
    build_mix_command,
    check_output_collision,
    group_inputs,
)
from trackmix.synthesis.options import (
    build_track_options,
    disposition_value,
    metadata_args,
    pad_metadata_value,
)

__all__ = [
    "CHAPTERS_SENTINEL",
    "InputGroup",
    "MixCommand",
    "build_mix_command",
    "build_track_options",
    "check_output_collision",
    "disposition_value",
    "group_inputs",
    "metadata_args",
    "pad_metadata_value",
]
