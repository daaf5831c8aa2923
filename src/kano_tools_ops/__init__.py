"""Kano Tools Ops - rendering operations built on kano_tools_core."""

from .template_engine import TemplateEngine

__all__ = ["TemplateEngine"]
