"""
Precast Kernel - pricing core for precast concrete pieces.

- BOM resolution and zone material price lookup
- Monthly process parameters with prior-month fallback
- Append-only, versioned material and piece price history
- Typed errors and structured logging
"""

__version__ = "0.1.0"
