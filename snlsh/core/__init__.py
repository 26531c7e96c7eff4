"""Core data types, errors and tokenization contracts."""
