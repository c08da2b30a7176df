"""Configuration, logging and output helpers shared by the commands."""
