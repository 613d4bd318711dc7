"""devpick - pick a workspace package and start its dev server.

Entry points:
- core/cli.py - the `devpick` command
- inference.py - the `devpick-inference` fallback for the inference package
- workspace.yaml - package lists, default package and selection timeout
"""
