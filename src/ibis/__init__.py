"""IBIS Package.

Command line wiring for validating JSON documents against the cached
IBIS schema.

Exported Functions:
    main: Entry point for the ibis-validate console command
"""
from .ibis import main

__all__ = ["main"]
