"""Transgate - A translation gateway for LLM providers.

This package validates translation requests, routes them to one of several
pluggable translation providers and retries transient upstream failures.
"""

__version__ = "0.1.0"
__license__ = "MIT"
