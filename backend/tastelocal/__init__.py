"""TasteLocal: business profile sync, vendor dashboard and consumer discovery backend."""

__version__ = "1.0.0"
