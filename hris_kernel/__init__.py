"""
HRIS Kernel

Shared infrastructure for the payroll core:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- SQLAlchemy base classes, engine and money types
- Deterministic clock and workflow value objects
"""

__version__ = "0.1.0"
