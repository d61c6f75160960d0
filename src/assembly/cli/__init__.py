"""Typer command line for the assembly."""
