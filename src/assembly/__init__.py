"""
Assembly - builds the signed, hour-bucketed diagnosis keys distribution tree.

- assembly.core: errors, structured logging, settings
- assembly.structure: ancestry trail, writables, archives, index nodes
- assembly.crypto: signing capability
- assembly.diagnosiskeys: records, export files, country/date/hour levels
- assembly.cli: Typer command line
"""

__version__ = "0.1.0"
