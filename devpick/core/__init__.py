"""devpick core.

Discovery, selection and launch of workspace dev servers. The CLI in
cli.py wires them together; everything else is importable and testable on
its own with an injected WorkspaceConfig.
"""
