"""Forge static site generator.

Forge turns a tree of Markdown posts and pages plus Jinja2 templates into a static
website. Builds run as a sequence of phases (load, parse, analyze, render, write)
and record a content-hash manifest so that the development server can tell what
changed between runs.

The main entry point is the CLI module, which provides commands for building the
site, running the development server with live reload, and cleaning build output.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
