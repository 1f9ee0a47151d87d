"""Instruction values, the manifest container and its Dockerfile rendering."""

from .instructions import Comment, Instruction, Manifest, Run, ShellBlock  # noqa: F401
from .dockerfile import render_dockerfile, render_instruction, write_dockerfile  # noqa: F401

__all__ = [
    "Comment",
    "Instruction",
    "Manifest",
    "Run",
    "ShellBlock",
    "render_dockerfile",
    "render_instruction",
    "write_dockerfile",
]
