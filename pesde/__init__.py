"""Core library of a package manager for the Luau programming language: names, manifests, targets, versions, projects, linking modules, scripts and engine sources."""

__version__ = "0.6.2"