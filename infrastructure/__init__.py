"""
Infrastructure layer: External dependencies and I/O boundaries.

Contains adapters for:
- Configuration loading (YAML, environment)
- Dataset loading (CSV, Excel, Parquet)
- Observability (logging)
- Random number generation

This is the only layer that performs I/O operations.
"""
