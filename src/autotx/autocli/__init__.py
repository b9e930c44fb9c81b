"""Reflective command synthesis — tx commands generated from service descriptors.

The autocli layer reads the schema registry and module options and builds
Click commands.  It must never import from output.
"""
