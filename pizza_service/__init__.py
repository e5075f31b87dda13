"""
                JWT Pizza Service

REST backend for pizza ordering: diners, franchises and their stores,
the menu, and orders fulfilled by the pizza factory.
"""

__version__ = "1.0.0"
