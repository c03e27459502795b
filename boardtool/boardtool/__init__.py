"""boardtool: launch vendor debug tools from layered platform properties."""

__version__ = "0.1.0"
