"""liveconf - keep a typed configuration object in sync with its file on disk."""

__version__ = "0.3.0"
