"""wasconverge - converge WebSphere cell configuration on a declared state."""

__version__ = "0.1.0"
