"""autotx — descriptor-driven transaction command synthesizer."""

__version__ = "0.1.0"
