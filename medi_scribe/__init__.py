"""MediScribe: clinical documentation assistant and perioperative risk engine."""

__version__ = "0.4.0"
