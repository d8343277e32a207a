from .__main__ import EXIT_FATAL, EXIT_INVALID_TABLES, EXIT_SUCCESS_ALL, main

__all__ = [
    "EXIT_FATAL",
    "EXIT_INVALID_TABLES",
    "EXIT_SUCCESS_ALL",
    "main",
]
