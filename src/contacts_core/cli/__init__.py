"""
Command-line entrypoint and maintenance console.

Components:
- bootstrap.py: composition root (create_initial_state)
- commands.py: slash-command registry and handlers
- console.py: interactive REPL
- main.py: process lifecycle (logging, start/stop, signals)
"""
