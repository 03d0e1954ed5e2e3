# backdrop/graphics/moderngl_surface.py
from __future__ import annotations

import logging

import moderngl

from backdrop.animation.particles import ParticleFrame
from backdrop.graphics.container import Container
from backdrop.graphics.shaders import ShaderLibrary
from backdrop.math import (
    create_perspective_projection,
    create_rotation_xy,
    create_translation,
    point_scale,
)
from backdrop.settings import ContextOptions
from backdrop.types import Size

logger = logging.getLogger(__name__)

CAMERA_FOV = 75.0
CAMERA_NEAR = 0.1
CAMERA_FAR = 1000.0
CAMERA_DISTANCE = 30.0

# float32 xyz
_BYTES_PER_PARTICLE = 12


class ModernGLSurface:
    """
    Draws a ParticleFrame as additive, size-attenuated points.

    Renders either into its own offscreen framebuffer (one standalone
    context per surface) or into the default framebuffer of a window.
    """

    def __init__(
        self,
        gl: moderngl.Context,
        size: Size,
        options: ContextOptions,
        *,
        offscreen: bool = True,
        owns_context: bool = True,
    ):
        self.gl = gl
        self.options = options
        self.offscreen = offscreen
        self._owns_context = owns_context

        self.shaders = ShaderLibrary(gl)
        self._program = self.shaders.get("particles", options.precision)

        self._vbo: moderngl.Buffer | None = None
        self._vao: moderngl.VertexArray | None = None
        self._vbo_capacity = 0

        self._fbo: moderngl.Framebuffer | None = None
        self.size = size
        self.physical_size = (1, 1)
        self._released = False

        gl.enable(moderngl.PROGRAM_POINT_SIZE)
        self.resize(size.width, size.height)

    def resize(self, width: int, height: int) -> None:
        ratio = self.options.pixel_ratio
        physical = (max(1, int(width * ratio)), max(1, int(height * ratio)))

        self.size = Size(width, height)
        if physical == self.physical_size and (
            self._fbo is not None or not self.offscreen
        ):
            return
        self.physical_size = physical

        if self.offscreen:
            if self._fbo is not None:
                self._fbo.release()
            self._fbo = self.gl.simple_framebuffer(
                physical,
                components=4,
                samples=4 if self.options.antialias else 0,
            )

    def _ensure_capacity(self, count: int) -> None:
        if self._vbo is not None and count <= self._vbo_capacity:
            return

        if self._vao is not None:
            self._vao.release()
        if self._vbo is not None:
            self._vbo.release()

        capacity = max(count, 1)
        self._vbo = self.gl.buffer(
            reserve=capacity * _BYTES_PER_PARTICLE, dynamic=True
        )
        self._vao = self.gl.vertex_array(
            self._program, [(self._vbo, "3f", "in_position")]
        )
        self._vbo_capacity = capacity

    def render(self, scene: ParticleFrame) -> None:
        if self._released:
            raise RuntimeError("Cannot render on a disposed surface")

        gl = self.gl
        target = self._fbo if self.offscreen else gl.screen
        assert target is not None

        w, h = self.physical_size
        target.use()
        gl.viewport = (0, 0, w, h)

        r, g, b = self.options.clear_color
        gl.clear(r, g, b, 0.0 if self.options.alpha else 1.0)

        count = scene.count
        if count == 0:
            return

        self._ensure_capacity(count)
        assert self._vbo is not None and self._vao is not None
        self._vbo.write(scene.positions.tobytes())

        gl.disable(moderngl.DEPTH_TEST)
        gl.enable(moderngl.BLEND)
        gl.blend_func = moderngl.SRC_ALPHA, moderngl.ONE

        model = create_rotation_xy(scene.rotation.x, scene.rotation.y)
        view = create_translation(0.0, 0.0, -CAMERA_DISTANCE)
        proj = create_perspective_projection(
            CAMERA_FOV, w / h, CAMERA_NEAR, CAMERA_FAR
        )
        view_proj = proj @ view

        style = scene.style
        self._program["u_model"].write(model.T.tobytes())
        self._program["u_view_proj"].write(view_proj.T.tobytes())
        self._program["u_point_size"].value = style.size
        self._program["u_point_scale"].value = point_scale(CAMERA_FOV, h)
        self._program["u_color"].value = style.color
        self._program["u_opacity"].value = style.opacity

        self._vao.render(moderngl.POINTS, vertices=count)

    def read_pixels(self) -> bytes:
        """RGBA bytes of the last offscreen frame."""
        if self._fbo is None:
            raise RuntimeError("Only offscreen surfaces can be read back")
        return self._fbo.read(components=4)

    def dispose(self) -> None:
        if self._released:
            return
        self._released = True

        if self._vao is not None:
            self._vao.release()
        if self._vbo is not None:
            self._vbo.release()
        if self._fbo is not None:
            self._fbo.release()
        self._vao = self._vbo = self._fbo = None

        self.shaders.release()
        if self._owns_context:
            self.gl.release()


def standalone_surface_factory(
    container: Container, size: Size, options: ContextOptions
) -> ModernGLSurface:
    """One headless OpenGL context per surface, drawing offscreen."""
    gl = moderngl.create_standalone_context()
    try:
        return ModernGLSurface(gl, size, options, offscreen=True)
    except Exception:
        gl.release()
        raise


def probe_max_texture_size() -> int | None:
    """Ask a throwaway context for GL_MAX_TEXTURE_SIZE. None if no GL."""
    try:
        gl = moderngl.create_standalone_context()
    except Exception:
        logger.info("No OpenGL context available for capability probe")
        return None
    try:
        return int(gl.info["GL_MAX_TEXTURE_SIZE"])
    finally:
        gl.release()
