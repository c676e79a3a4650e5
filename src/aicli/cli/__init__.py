"""CLI module - Command line interface for the ai client.

- main: argument parsing, single-turn driver, error-to-exit-code mapping
- repl: interactive multi-turn loop
- input / output: prompt resolution and text/JSON rendering

The console script entry point is ``aicli.cli.main:main``.
"""
