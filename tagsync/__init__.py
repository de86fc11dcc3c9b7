"""Mirror upstream tags into a fork and publish release binaries for them."""

__version__ = "0.1.0"
