"""
Command-line tools for Board Server.

- schema_cli: compile and lint entity declaration files
"""
