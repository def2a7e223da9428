"""ghmd — live GitHub markdown previewer."""

__version__ = "0.3.0"
