"""SPOG Inventory Tracker: sealant, paint, oil and grease stock control."""

from .utils.constants import APP_VERSION

__version__ = APP_VERSION
