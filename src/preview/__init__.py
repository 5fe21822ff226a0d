"""Flask preview server for a published docsearch index."""
from .web import app, configure, main

__all__ = ["app", "configure", "main"]
