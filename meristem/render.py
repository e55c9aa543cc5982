# Rasterise interpreter output: Pillow draws, numpy holds frames, cv2 writes PNGs.
import logging
import os
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import cv2
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from PIL import Image, ImageDraw

from meristem.errors import InvalidConfiguration
from meristem.interpreter import DrawCommand, interpret
from meristem.presets import GrowthConfig
from meristem.rules import expand

logger = logging.getLogger(__name__)

Transform = Callable[[float, float], Tuple[float, float]]


def segment_bounds(commands: Sequence[DrawCommand]) -> Tuple[float, float, float, float]:
    """Bounding box (minx, miny, maxx, maxy) of all segment endpoints."""
    if not commands:
        raise InvalidConfiguration("no segments to measure")
    pts = np.array([(c.start[0], c.start[1], c.end[0], c.end[1]) for c in commands], dtype=np.float64)
    xs = pts[:, [0, 2]]
    ys = pts[:, [1, 3]]
    return float(xs.min()), float(ys.min()), float(xs.max()), float(ys.max())


def fit_transform(bounds: Tuple[float, float, float, float],
                  canvas_size: Tuple[int, int],
                  margin: int = 10) -> Transform:
    """
    Uniform scale mapping ``bounds`` into the canvas, centred inside ``margin``.
    The y axis keeps its direction (image rows grow downward).
    """
    minx, miny, maxx, maxy = bounds
    width = max(maxx - minx, 1e-6)
    height = max(maxy - miny, 1e-6)

    W, H = canvas_size
    sx = (W - 2 * margin) / width
    sy = (H - 2 * margin) / height
    scale = min(sx, sy)
    off_x = margin + (W - 2 * margin - width * scale) / 2
    off_y = margin + (H - 2 * margin - height * scale) / 2

    def to_px(x, y):
        return off_x + (x - minx) * scale, off_y + (y - miny) * scale

    return to_px


def save_png(path: str, img: np.ndarray) -> str:
    """Write an RGB array as PNG through OpenCV (which expects BGR)."""
    if img.ndim == 3:
        img = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
    if not cv2.imwrite(path, img):
        raise OSError(f"could not write image to {path}")
    return path


class CanvasSink:
    """
    Receives draw commands and snapshot signals and turns them into pixels.

    Args:
        canvas_size: (W, H) in pixels.
        branch_width: Stroke width in pixels.
        stroke_color: RGB of every segment.
        background: RGB canvas fill.
        transform: Maps turtle coordinates to pixels; identity when None.
        frame_dir: If set, every snapshot is written there as <frame:05d>.png.
        keep_frames: Keep a numpy copy of the canvas for every snapshot.
        max_frames: Bound on the kept copies. Once exceeded, every other kept
            frame is dropped and the keep interval doubles, so the copies stay
            evenly spaced over the whole growth.
    """

    def __init__(self,
                 canvas_size: Tuple[int, int],
                 branch_width: int = 1,
                 stroke_color=(205, 133, 63),
                 background=(0, 0, 0),
                 transform: Optional[Transform] = None,
                 frame_dir: Optional[str] = None,
                 keep_frames: bool = False,
                 max_frames: Optional[int] = None):
        if max_frames is not None and max_frames < 2:
            raise InvalidConfiguration(f"max_frames must be >= 2, got {max_frames}")
        W, H = canvas_size
        self.canvas_size = (W, H)
        self.branch_width = branch_width
        self.stroke_color = tuple(stroke_color)
        self.transform = transform
        self.frame_dir = frame_dir
        self.keep_frames = keep_frames
        self.max_frames = max_frames
        self.frames: List[np.ndarray] = []
        self.frame_indices: List[int] = []
        self._stride = 1
        self.frame_paths: List[str] = []
        self.num_drawn = 0

        img = np.full((H, W, 3), background, dtype=np.uint8)
        self.image = Image.fromarray(img)
        self._draw = ImageDraw.Draw(self.image)

    def draw(self, command: DrawCommand) -> None:
        p0, p1 = command.start, command.end
        if self.transform is not None:
            p0 = self.transform(*p0)
            p1 = self.transform(*p1)
        self._draw.line([p0, p1], fill=self.stroke_color, width=self.branch_width)
        self.num_drawn += 1

    def snapshot(self, frame: int) -> None:
        keep = self.keep_frames and frame % self._stride == 0
        if self.frame_dir is None and not keep:
            return
        img = self.to_array()
        if self.frame_dir is not None:
            path = os.path.join(self.frame_dir, f"{frame:05d}.png")
            self.frame_paths.append(save_png(path, img))
        if keep:
            self.frames.append(img)
            self.frame_indices.append(frame)
            if self.max_frames is not None and len(self.frames) > self.max_frames:
                self.frames = self.frames[::2]
                self.frame_indices = self.frame_indices[::2]
                self._stride *= 2

    def to_array(self) -> np.ndarray:
        return np.array(self.image, dtype=np.uint8)

    def save_png(self, path: str) -> str:
        return save_png(path, self.to_array())


class RenderResult(NamedTuple):
    commands: List[DrawCommand]
    image: np.ndarray
    paths: List[str]
    frames: List[np.ndarray]


def render(config: GrowthConfig,
           keep_frames: bool = False,
           max_frames: Optional[int] = None) -> RenderResult:
    """
    Expand, interpret and draw ``config``; write the PNGs to ``config.output_dir``.

    Snapshot mode writes one image per drawn segment followed by final.png,
    otherwise only final.png is written. With ``keep_frames`` the snapshots are
    also returned as arrays, at most ``max_frames`` of them plus the final
    image when thinning skipped it.
    """
    symbols = expand(config.axiom, config.rules, config.generations, max_length=config.max_length)
    logger.info("%s: %d generations -> %d symbols", config.name, config.generations, len(symbols))
    commands = interpret(symbols, config.turtle_params(), snapshot_per_step=config.snapshot_per_step)
    logger.info("%s: %d segments", config.name, len(commands))

    transform = None
    if config.fit_to_canvas and commands:
        transform = fit_transform(segment_bounds(commands), config.canvas_size, config.margin)

    os.makedirs(config.output_dir, exist_ok=True)
    sink = CanvasSink(
        canvas_size=config.canvas_size,
        branch_width=config.branch_width,
        stroke_color=config.stroke_color,
        background=config.background,
        transform=transform,
        frame_dir=config.output_dir if config.snapshot_per_step else None,
        keep_frames=keep_frames,
        max_frames=max_frames,
    )
    for command in commands:
        sink.draw(command)
        if command.frame is not None:
            sink.snapshot(command.frame)

    image = sink.to_array()
    final_path = save_png(os.path.join(config.output_dir, "final.png"), image)
    logger.info("Saved images to: %s", config.output_dir)
    if sink.frame_indices and sink.frame_indices[-1] != commands[-1].frame:
        sink.frames.append(image)
    return RenderResult(commands, image, sink.frame_paths + [final_path], sink.frames)


def save_animation(frames: Sequence[np.ndarray], path: str, duration_ms: int = 40) -> str:
    """Animated GIF of ``frames`` looping forever."""
    if len(frames) == 0:
        raise InvalidConfiguration("no frames to animate")
    images = [Image.fromarray(f) for f in frames]
    images[0].save(path, save_all=True, append_images=images[1:], duration=duration_ms, loop=0)
    logger.info("Animation saved to: %s (%d frames)", path, len(images))
    return path


def save_contact_sheet(frames: Sequence[np.ndarray], path: str, columns: int = 4, max_panels: int = 12) -> str:
    """Grid of evenly spaced frames, to eyeball how the plant grows."""
    if len(frames) == 0:
        raise InvalidConfiguration("no frames to plot")
    n = min(len(frames), max_panels)
    picks = np.linspace(0, len(frames) - 1, n).round().astype(int)
    rows = int(np.ceil(n / columns))
    cols = min(columns, n)

    fig, axes = plt.subplots(rows, cols, figsize=(3 * cols, 3 * rows), squeeze=False)
    for ax in axes.flat:
        ax.axis('off')
    for ax, i in zip(axes.flat, picks):
        ax.imshow(frames[i])
        ax.set_title(f"step {i}")
    plt.tight_layout()
    fig.savefig(path, dpi=100, bbox_inches='tight')
    plt.close(fig)
    return path
