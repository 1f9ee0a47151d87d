"""Render a manifest as Dockerfile text."""

from __future__ import annotations

import json
import logging
from typing import List

from manifest.instructions import Comment, Manifest, Run, ShellBlock

logger = logging.getLogger(__name__)


def render_instruction(instruction) -> str:
    """Render one instruction as a Dockerfile line (or continued lines)."""
    if isinstance(instruction, Comment):
        return f"# {instruction.text}"
    if isinstance(instruction, Run):
        return "RUN " + json.dumps([instruction.executable, *instruction.params])
    if isinstance(instruction, ShellBlock):
        return "RUN " + " \\\n  && ".join(instruction.commands)
    raise TypeError(f"Unsupported instruction type: {type(instruction).__name__}")


def render_dockerfile(manifest: Manifest) -> str:
    """Render the manifest, starting with its FROM line."""
    lines: List[str] = [f"FROM {manifest.image}"]
    lines.extend(render_instruction(i) for i in manifest.instructions)
    return "\n".join(lines) + "\n"


def write_dockerfile(manifest: Manifest, path: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(render_dockerfile(manifest))
    logger.info("Dockerfile has been successfully written at: %s", path)
