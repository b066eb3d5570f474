"""External term reference collection for specification documents."""

__version__ = "1.0.0"
