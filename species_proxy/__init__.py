"""
Species classification proxy.

Request-transforming reverse proxy for image classifiers, with taxonomy and
Record Cleaner enrichment of the returned suggestions.
"""

__version__ = '1.0.0'
