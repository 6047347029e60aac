"""Power virtual machines on and off across cloud providers."""

__version__ = "0.1.0"
