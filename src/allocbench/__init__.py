"""allocbench: compare the memory allocation cost of Python callables."""

__version__ = "0.1.0"
