"""TypeGraph CLI: structural analysis of extracted type catalogs."""

__version__ = "0.3.0"
