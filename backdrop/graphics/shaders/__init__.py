# backdrop/graphics/shaders/__init__.py
from pathlib import Path
from typing import Dict, Tuple

import moderngl

from backdrop.settings import Precision

SHADER_DIR = Path(__file__).parent / "default"

_PRECISION_MARKER = "// PRECISION"


def read_stages(name: str, shader_dir: Path = SHADER_DIR) -> Tuple[str, str]:
    """Read {name}.vert and {name}.frag as source strings."""
    vert_path = shader_dir / f"{name}.vert"
    frag_path = shader_dir / f"{name}.frag"

    if not vert_path.exists() or not frag_path.exists():
        raise FileNotFoundError(f"Shader {name} missing in {shader_dir}")

    return vert_path.read_text(), frag_path.read_text()


def apply_precision(source: str, precision: Precision) -> str:
    """Swap the precision marker for a default float precision statement."""
    return source.replace(
        _PRECISION_MARKER, f"precision {Precision(precision).value} float;"
    )


class ShaderLibrary:
    """Compiled programs for one moderngl context, keyed by name+precision."""

    def __init__(self, ctx: moderngl.Context, shader_dir: Path = SHADER_DIR):
        self.ctx = ctx
        self.dir = Path(shader_dir)
        self._programs: Dict[Tuple[str, Precision], moderngl.Program] = {}

    def get(
        self, name: str, precision: Precision = Precision.MEDIUM
    ) -> moderngl.Program:
        key = (name, Precision(precision))
        if key not in self._programs:
            vert_src, frag_src = read_stages(name, self.dir)
            self._programs[key] = self.ctx.program(
                vertex_shader=vert_src,
                fragment_shader=apply_precision(frag_src, key[1]),
            )
        return self._programs[key]

    def release(self) -> None:
        for program in self._programs.values():
            program.release()
        self._programs.clear()
