"""VetCare clinic back office: appointment scheduling and reminder dispatch."""

__version__ = "0.1.0"
