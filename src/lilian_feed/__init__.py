"""Content feed aggregation and terminal viewer for the Programa Lilian site."""

__version__ = "0.1.0"
