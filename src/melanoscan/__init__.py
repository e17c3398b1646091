"""MelanoScan skin-lesion scan backend."""

__version__ = "1.1.0"
