from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, ClassVar

from glom import T

from forkpath.path.Step import IndexStep, KeyStep, PropertyStep, Step


@dataclass(frozen=True, slots=True)
class Path:
    """An immutable, ordered sequence of steps from a root to a leaf."""

    steps: tuple[Step, ...] = ()

    ROOT: ClassVar[Path]

    def append(self, step: Step) -> Path:
        return Path((*self.steps, step))

    @property
    def parent(self) -> Path:
        return Path(self.steps[:-1])

    @property
    def last(self) -> Step | None:
        return self.steps[-1] if self.steps else None

    def to_spec(self) -> Any:
        """Convert to a glom `T` spec that reads the same location.

        Attribute steps become attribute access on T, index and key steps
        become subscripts, so `glom(root, path.to_spec())` returns the value
        this path points at.
        """
        spec: Any = T
        for step in self.steps:
            match step:
                case PropertyStep(name=name):
                    spec = getattr(spec, name)
                case IndexStep(position=position):
                    spec = spec[position]
                case KeyStep(key=k):
                    spec = spec[k]
        return spec

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __str__(self) -> str:
        rendered = "".join(step.render() for step in self.steps)
        return rendered.removeprefix(".") or "<root>"


Path.ROOT = Path()
