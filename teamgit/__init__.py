"""Team git activity service package.

Ensures the local ``teamgit`` package is resolved as a regular package instead
of a namespace package that could pick up unrelated modules.
"""
