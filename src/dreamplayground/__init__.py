"""Dream Playground: turn dream descriptions into panoramas and reflections."""

__version__ = "0.3.0"
