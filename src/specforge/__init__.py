"""
specforge - incremental code generation from an application specification.

A user describes an application as a graph of pages, components, contexts,
assets and style guides. specforge detects which entities changed, schedules
regeneration in dependency order, calls a text-generation provider for the
affected entities only, and keeps the results in a virtual file system that a
preview sandbox can consume.
"""

__version__ = "0.1.0"
