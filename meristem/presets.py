"""
Growth configurations and the library of named L-system presets.

One GrowthConfig carries everything a run needs: grammar, generation count,
turtle geometry and canvas settings. Units:
    branch_length, initial_position, margin: canvas pixels
    branch_width: pixels
    turn_angle, initial_phase: radians (phase -pi/2 points up on the canvas)
    stroke_color, background: RGB, 0-255
"""

import math
import random
from typing import Dict, List, Optional, Tuple, Union

from meristem.errors import InvalidConfiguration
from meristem.interpreter import TurtleParams
from meristem.rules import RuleSet, as_rule_set, validate_generations

Color = Tuple[int, int, int]

# One growing season split into days: each turn is 25 days' worth of a full circle.
PLANT_TURN_ANGLE = 2 * math.pi * 25 / 365


class GrowthConfig:
    """
    Full description of one run: grammar, turtle geometry and output.

    Args:
        axiom: Starting symbol string.
        rules: Production rules (mapping or RuleSet).
        generations: Number of rewrite passes (>= 0).
        branch_length: Length of one 'F' / 'G' step (> 0).
        turn_angle: Angle for '+' / '-' in radians.
        initial_phase: Heading of the root turtle in radians.
        initial_position: Root position; None puts it at the bottom centre
            of the canvas.
        branch_width: Stroke width in pixels.
        canvas_size: Square size or (W, H) in pixels.
        stroke_color: RGB of the branches.
        background: RGB of the canvas.
        output_dir: Directory the rendered frames are written to.
        snapshot_per_step: Save one frame per drawn segment.
        fit_to_canvas: Scale the geometry into the canvas instead of drawing
            it at its raw pixel coordinates.
        margin: Border kept free when fitting, in pixels.
        max_length: Upper bound on the expanded string length, None = unbounded.
        name, description: Labels used in logs and the preset listing.
    """

    def __init__(self,
                 axiom: str,
                 rules,
                 generations: int,
                 branch_length: float,
                 turn_angle: float,
                 initial_phase: float = -math.pi / 2,
                 initial_position: Optional[Tuple[float, float]] = None,
                 branch_width: int = 1,
                 canvas_size: Union[int, Tuple[int, int]] = 500,
                 stroke_color: Color = (205, 133, 63),
                 background: Color = (0, 0, 0),
                 output_dir: str = "img",
                 snapshot_per_step: bool = False,
                 fit_to_canvas: bool = False,
                 margin: int = 10,
                 max_length: Optional[int] = 2_000_000,
                 name: str = "custom",
                 description: str = ""):
        if not isinstance(axiom, str) or not axiom:
            raise InvalidConfiguration("axiom must be a non-empty string")
        self.axiom = axiom
        self.rules: RuleSet = as_rule_set(rules)
        self.generations = validate_generations(generations)
        self.branch_length = branch_length
        self.turn_angle = turn_angle
        self.initial_phase = initial_phase
        self.initial_position = initial_position

        if isinstance(canvas_size, int):
            canvas_size = (canvas_size, canvas_size)
        W, H = canvas_size
        if W <= 0 or H <= 0:
            raise InvalidConfiguration(f"canvas_size must be positive, got {canvas_size}")
        self.canvas_size = (int(W), int(H))
        if branch_width < 1:
            raise InvalidConfiguration(f"branch_width must be >= 1 pixel, got {branch_width}")
        self.branch_width = int(branch_width)
        if margin < 0:
            raise InvalidConfiguration(f"margin must be >= 0, got {margin}")
        # margin only matters when the drawing is scaled into the canvas
        if fit_to_canvas and 2 * margin >= min(self.canvas_size):
            raise InvalidConfiguration(f"margin {margin} does not fit a {W}x{H} canvas")
        self.margin = margin
        if max_length is not None and max_length < len(axiom):
            raise InvalidConfiguration(f"max_length={max_length} is shorter than the axiom")
        self.max_length = max_length

        self.stroke_color = tuple(stroke_color)
        self.background = tuple(background)
        self.output_dir = output_dir
        self.snapshot_per_step = bool(snapshot_per_step)
        self.fit_to_canvas = bool(fit_to_canvas)
        self.name = name
        self.description = description

        # Validates branch_length and the angles
        self.turtle_params()

    def turtle_params(self) -> TurtleParams:
        position = self.initial_position
        if position is None:
            W, H = self.canvas_size
            position = (W / 2, H)
        return TurtleParams(
            branch_length=self.branch_length,
            turn_angle=self.turn_angle,
            initial_phase=self.initial_phase,
            initial_position=position,
        )

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "axiom": self.axiom,
            "rules": dict(self.rules),
            "generations": self.generations,
            "branch_length": self.branch_length,
            "turn_angle": self.turn_angle,
            "initial_phase": self.initial_phase,
            "initial_position": self.initial_position,
            "branch_width": self.branch_width,
            "canvas_size": self.canvas_size,
            "stroke_color": self.stroke_color,
            "background": self.background,
            "output_dir": self.output_dir,
            "snapshot_per_step": self.snapshot_per_step,
            "fit_to_canvas": self.fit_to_canvas,
            "margin": self.margin,
            "max_length": self.max_length,
            "description": self.description,
        }

    def replace(self, **changes) -> "GrowthConfig":
        """Copy with some fields changed; the copy is validated again."""
        fields = self.to_dict()
        unknown = set(changes) - set(fields)
        if unknown:
            raise InvalidConfiguration(f"unknown config fields: {sorted(unknown)}")
        fields.update(changes)
        return GrowthConfig(**fields)

    def __repr__(self) -> str:
        return f"GrowthConfig(name={self.name!r}, axiom={self.axiom!r}, generations={self.generations})"


PRESETS: Dict[str, Dict] = {
    # Drawn at raw pixel positions, growing up from the bottom centre
    "plant_fractal": {
        "axiom": "X",
        "rules": {"X": "F-[[X]+X]+F[+FX]-X", "F": "FF"},
        "generations": 4,
        "branch_length": 15,
        "turn_angle": PLANT_TURN_ANGLE,
        "canvas_size": 500,
        "description": "Plant fractal, 25/365 of a turn per branch",
    },
    "koch_curve": {
        "axiom": "F",
        "rules": {"F": "F+F-F-F+F"},
        "generations": 3,
        "branch_length": 5,
        "turn_angle": math.pi / 2,
        "initial_phase": 0.0,
        "fit_to_canvas": True,
        "description": "Quadratic Koch curve",
    },
    "koch_snowflake": {
        "axiom": "F--F--F",
        "rules": {"F": "F+F--F+F"},
        "generations": 4,
        "branch_length": 3,
        "turn_angle": math.pi / 3,
        "initial_phase": 0.0,
        "fit_to_canvas": True,
        "description": "Koch snowflake",
    },
    "sierpinski_arrowhead": {
        "axiom": "XF",
        "rules": {"X": "YF+XF+Y", "Y": "XF-YF-X"},
        "generations": 6,
        "branch_length": 4,
        "turn_angle": math.pi / 3,
        "initial_phase": 0.0,
        "fit_to_canvas": True,
        "description": "Sierpinski arrowhead curve",
    },
    "fractal_root": {
        "axiom": "X",
        "rules": {"X": "F-[[X]+X]+F[+FX]-X", "F": "FF"},
        "generations": 3,
        "branch_length": 6,
        "turn_angle": math.radians(25.0),
        "initial_phase": math.pi / 2,
        "canvas_size": (128, 256),
        "fit_to_canvas": True,
        "description": "Fractal-like complex branching, growing downward",
    },
    "taproot_branched": {
        "axiom": "X",
        "rules": {"X": "F[+X]F[-X]+X", "F": "FF"},
        "generations": 4,
        "branch_length": 8,
        "turn_angle": math.radians(25.0),
        "initial_phase": math.pi / 2,
        "canvas_size": (128, 256),
        "fit_to_canvas": True,
        "description": "Highly branched tap root system",
    },
    "bush": {
        "axiom": "F",
        "rules": {"F": "FF+[+F-F-F]-[-F+F+F]"},
        "generations": 3,
        "branch_length": 8,
        "turn_angle": math.radians(22.5),
        "fit_to_canvas": True,
        "description": "Bush with layered side branches",
    },
}


class PresetLibrary:
    """Named GrowthConfigs replacing one hard-coded program per fractal."""

    @staticmethod
    def names() -> List[str]:
        return sorted(PRESETS)

    @staticmethod
    def get(name: str, **overrides) -> GrowthConfig:
        if name not in PRESETS:
            raise InvalidConfiguration(
                f"unknown preset {name!r}, choose one of: {', '.join(PresetLibrary.names())}"
            )
        fields = dict(PRESETS[name], name=name)
        fields.update(overrides)
        return GrowthConfig(**fields)

    @staticmethod
    def get_all() -> Dict[str, GrowthConfig]:
        return {name: PresetLibrary.get(name) for name in PRESETS}

    @staticmethod
    def create_variations(name: str, num_variations: int = 5, seed: Optional[int] = None) -> List[GrowthConfig]:
        """
        Jittered copies of a preset: turn angle +/- 5 degrees, branch length +/- 2.

        The same seed always gives the same variations.
        """
        base = PresetLibrary.get(name)
        rng = random.Random(seed)
        variations = []
        for i in range(num_variations):
            variations.append(base.replace(
                turn_angle=base.turn_angle + math.radians(rng.uniform(-5, 5)),
                branch_length=max(1, base.branch_length + rng.randint(-2, 2)),
                name=f"{name}_var{i + 1}",
            ))
        return variations
