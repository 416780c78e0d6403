"""Building blocks for release pipelines: artifacts, build target matrices, git helpers, publishers and forge clients."""

__version__ = "0.1.0"