"""Market timing dashboard: indicator collection, composite score, investment stance."""

__version__ = "0.1.0"
