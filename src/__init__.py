"""Widget Engine - declarative CRUD screens.

Compiles widget definition files into in-memory descriptors:
- Table and form definitions (fields, filters, actions, layout)
- Compute and cloud prop overlays merged into fields
- Locale packs applied to labels and options
"""

__version__ = "0.1.0"
