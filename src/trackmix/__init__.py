"""trackmix: track-level media container editing and FFmpeg remux synthesis."""

__version__ = "0.1.0"
