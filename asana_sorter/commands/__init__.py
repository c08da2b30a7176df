"""
Command handlers for the asana-tasks-sorter CLI.

Each ``handle_*`` function takes the parsed CLI arguments and returns the
process exit code.
"""
