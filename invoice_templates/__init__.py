"""Jinja2 templates for the printable invoice layouts."""
