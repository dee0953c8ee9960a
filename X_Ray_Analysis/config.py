import os
from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class RegionSpec:
    """Relative rectangle (fractions of width/height) a statistic is sampled over."""
    name: str
    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class ScanLine:
    """Relative horizontal line used for segment counting."""
    name: str
    y: float
    x: float = 0.0
    w: float = 1.0


WHOLE_IMAGE = RegionSpec("whole_image", 0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True)
class AnalysisConfig:
    # ---------------------------- SAMPLING ---------------------------- #
    density_stride: int = 20
    edge_stride: int = 12
    edge_offset: int = 4
    edge_noise_threshold: int = 20
    edge_scale: float = 100.0
    entropy_stride: int = 10
    entropy_offset: int = 3
    entropy_threshold: int = 25
    segment_brightness_threshold: float = 0.45
    segment_min_width: float = 0.015
    sampler_workers: int = 4

    # ---------------------------- QUALITY GATE ---------------------------- #
    dark_floor: float = 0.08
    bright_ceiling: float = 0.92
    flatness_floor: float = 0.02

    # ---------------------------- ANATOMY ---------------------------- #
    upper_left: RegionSpec = RegionSpec("upper_left", 0.05, 0.05, 0.15, 0.15)
    upper_right: RegionSpec = RegionSpec("upper_right", 0.80, 0.05, 0.15, 0.15)
    center: RegionSpec = RegionSpec("center", 0.30, 0.30, 0.40, 0.40)
    vertical_strip: RegionSpec = RegionSpec("vertical_strip", 0.40, 0.05, 0.20, 0.90)
    digit_line: ScanLine = ScanLine("digit_line", 0.30)

    chest_ratio_min: float = 1.05
    chest_corner_density_min: float = 0.55
    chest_corner_entropy_max: float = 0.35
    hand_segments_high: int = 4
    hand_segments_moderate: int = 2
    hand_corner_entropy_min: float = 0.20
    leg_segments_max: int = 1
    leg_v_mass_min: float = 0.45
    leg_corner_entropy_max: float = 0.25
    leg_center_density_min: float = 0.35
    margin_span: float = 0.30
    segment_span: int = 3
    confidence_base: float = 0.40
    confidence_gain: float = 0.60
    anatomy_confidence_floor: float = 0.55

    # ---------------------------- PATHOLOGY ---------------------------- #
    lung_field: RegionSpec = RegionSpec("lung_field", 0.20, 0.20, 0.40, 0.70)
    limb_region: RegionSpec = RegionSpec("limb", 0.20, 0.10, 0.60, 0.80)
    chest_critical: float = 0.75
    chest_moderate: float = 0.60
    limb_critical: float = 0.25
    limb_moderate: float = 0.08
    hand_sensitivity: float = 1.0
    leg_sensitivity: float = 1.25
    critical_band_offset: float = 0.60
    critical_band_ceiling: float = 0.99
    moderate_band_offset: float = 0.65
    moderate_band_ceiling: float = 0.88
    healthy_probability: float = 0.99
    unknown_probability: float = 0.30

    # ---------------------------- RULE ENGINE ---------------------------- #
    abnormal_confidence: int = 92
    normal_confidence: int = 98

    # ---------------------------- REFERENCE SHORTCUT ---------------------------- #
    reference_size_tolerance: int = 500
    reference_severe_probability: float = 0.99
    reference_medium_probability: float = 0.95
    reference_normal_probability: float = 0.99

    @classmethod
    def from_env(cls, prefix="XRAY_"):
        """Build a config, overriding numeric fields from XRAY_<FIELD> variables.

        e.g. XRAY_DARK_FLOOR=0.1 or XRAY_ABNORMAL_CONFIDENCE=90
        """
        base = cls()
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            current = getattr(base, f.name)
            if isinstance(current, bool) or not isinstance(current, (int, float)):
                raise ValueError(f"{f.name} cannot be set from the environment")
            try:
                overrides[f.name] = type(current)(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {prefix}{f.name.upper()}: {raw!r}") from exc
        return replace(base, **overrides)


DEFAULT_CONFIG = AnalysisConfig()
