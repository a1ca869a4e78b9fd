"""
redoubt - policy-driven harvest service.

Issues machine-scoped tasks and products to callers based on the machine
and user identity they assert.
"""

__version__ = "0.1.0"
