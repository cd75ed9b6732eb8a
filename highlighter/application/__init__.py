"""
Application layer.

Use cases orchestrating the domain model over the document store port.
"""
