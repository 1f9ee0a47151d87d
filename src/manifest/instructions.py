"""Instruction values and the manifest that collects them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple, Union


@dataclass(frozen=True)
class Comment:
    """A comment line in the generated manifest."""
    text: str


@dataclass(frozen=True)
class Run:
    """Execute a single program with ordered arguments."""
    executable: str
    params: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))


@dataclass(frozen=True)
class ShellBlock:
    """A sequence of shell commands executed as one step."""
    commands: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))


Instruction = Union[Comment, Run, ShellBlock]


@dataclass
class Manifest:
    """Ordered instruction container for one base image.

    Instructions are only ever appended.
    """
    image: str
    _instructions: List[Instruction] = field(default_factory=list, repr=False)

    def append(self, instruction: Union[Instruction, Iterable[Instruction]]) -> None:
        if isinstance(instruction, (Comment, Run, ShellBlock)):
            self._instructions.append(instruction)
            return
        for item in instruction:
            self.append(item)

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        return tuple(self._instructions)

    def __len__(self) -> int:
        return len(self._instructions)
