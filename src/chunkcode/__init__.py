"""chunkcode - chunked parallel media transcoding."""

__version__ = "0.1.0"
