"""RateDesk: client-side data orchestration for a crypto rate dashboard."""

__version__ = "0.1.0"
