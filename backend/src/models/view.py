"""View configuration models and the built-in configuration profiles."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Dimensions(BaseModel):
    """Viewport size; the layout origin sits at the viewport center."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(default=1200, gt=0)
    height: float = Field(default=1200, gt=0)


class NodeStyle(BaseModel):
    """Node glyph appearance."""

    model_config = ConfigDict(frozen=True)

    base_radius: float = Field(default=7, ge=0, description="Radius of a node with no connections")
    radius_multiplier: float = Field(default=0.5, ge=0, description="Radius added per connection")
    fill: str = "#1f77b4"
    tag_fill: str = "#cc77cc"
    highlight_fill: str = "#ff6b6b"
    font_size: float = Field(default=0, ge=0)
    hover_font_size: float = Field(default=25, ge=0)
    text_color: str = "#333333"
    text_y_offset: float = 30
    dim_opacity: float = Field(default=0.2, ge=0, le=1)
    highlight_opacity: float = Field(default=1.0, ge=0, le=1)
    transition_duration: int = Field(default=300, ge=0, description="Milliseconds")


class LinkStyle(BaseModel):
    """Link line appearance."""

    model_config = ConfigDict(frozen=True)

    stroke: str = "#999"
    highlight_stroke: str = "#ff6b6b"
    opacity: float = Field(default=1.0, ge=0, le=1)
    width: float = Field(default=1.0, gt=0)
    highlight_width: float = Field(default=2.0, gt=0)
    dim_opacity: float = Field(default=0.2, ge=0, le=1)
    highlight_opacity: float = Field(default=1.0, ge=0, le=1)


class ForceSettings(BaseModel):
    """Strengths of the layout forces."""

    model_config = ConfigDict(frozen=True)

    center_force: float = Field(default=0.2, ge=0, le=1, description="Pull toward the origin")
    repel_force: float = Field(default=-500, le=0, description="Pairwise push, negative")
    link_force: float = Field(default=0.3, ge=0, le=1, description="Spring pull along links")
    link_distance: float = Field(default=50, gt=0, description="Rest length of a link")


class ZoomSettings(BaseModel):
    """Bounds and initial value of the view scale."""

    model_config = ConfigDict(frozen=True)

    min_scale: float = Field(default=0.1, gt=0)
    max_scale: float = Field(default=10, gt=0)
    default_scale: float = Field(default=0.6, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ZoomSettings":
        if self.min_scale > self.max_scale:
            raise ValueError("min_scale must not exceed max_scale")
        if not self.min_scale <= self.default_scale <= self.max_scale:
            raise ValueError("default_scale must lie within [min_scale, max_scale]")
        return self


class SimulationSettings(BaseModel):
    """Energy schedule and integration parameters of the layout engine."""

    model_config = ConfigDict(frozen=True)

    alpha_start: float = Field(default=0.5, gt=0, le=1)
    alpha_min: float = Field(default=0.001, gt=0, description="Settled threshold")
    alpha_decay: float = Field(default=0.98, gt=0, lt=1, description="Per-step decay factor")
    reheat_alpha: float = Field(default=0.3, gt=0, le=1)
    drag_alpha_target: float = Field(default=0.3, ge=0, le=1)
    velocity_retention: float = Field(default=0.8, ge=0, lt=1)
    time_step: float = Field(default=1.0, gt=0)
    min_distance: float = Field(default=1.0, gt=0, description="Repulsion distance clamp")
    collide: bool = False
    collide_strength: float = Field(default=0.7, ge=0, le=1)
    seed: int = 0
    frame_interval: float = Field(default=1 / 60, ge=0, description="Seconds between steps")


class GraphSettings(BaseModel):
    """Graph building options."""

    model_config = ConfigDict(frozen=True)

    expand_tags: bool = True


class InteractionSettings(BaseModel):
    """Pointer handling thresholds."""

    model_config = ConfigDict(frozen=True)

    click_distance: float = Field(
        default=3.0, ge=0, description="Max pointer travel (screen px) for a click"
    )


class ViewConfig(BaseModel):
    """Complete, immutable configuration of a graph view."""

    model_config = ConfigDict(frozen=True)

    dimensions: Dimensions = Field(default_factory=Dimensions)
    node: NodeStyle = Field(default_factory=NodeStyle)
    link: LinkStyle = Field(default_factory=LinkStyle)
    forces: ForceSettings = Field(default_factory=ForceSettings)
    zoom: ZoomSettings = Field(default_factory=ZoomSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    graph: GraphSettings = Field(default_factory=GraphSettings)
    interaction: InteractionSettings = Field(default_factory=InteractionSettings)

    def update(self, category: str, param: str, value: Any) -> "ViewConfig":
        """
        Return a copy with a single option replaced.

        Raises ValueError for unknown options or values failing validation.
        """
        if category not in type(self).model_fields:
            raise ValueError(f"Unknown configuration category: {category}")
        section = getattr(self, category)
        if param not in type(section).model_fields:
            raise ValueError(f"Unknown option '{param}' in category '{category}'")
        data = self.model_dump()
        data[category][param] = value
        return ViewConfig.model_validate(data)

    def merged(self, overrides: Dict[str, Dict[str, Any]]) -> "ViewConfig":
        """Return a copy with whole sections partially overridden."""
        data = self.model_dump()
        for category, values in overrides.items():
            if category not in data:
                raise ValueError(f"Unknown configuration category: {category}")
            if not isinstance(values, dict):
                raise ValueError(f"Overrides for '{category}' must be an object")
            data[category].update(values)
        return ViewConfig.model_validate(data)

    def node_radius(self, connections: int) -> float:
        return self.node.base_radius + connections * self.node.radius_multiplier


DEFAULT_PROFILE = "tags"

PROFILES: Dict[str, ViewConfig] = {
    # Tag nodes on, thin links that thicken on hover.
    "tags": ViewConfig(),
    # Notes only, heavier links and an orange highlight.
    "notes": ViewConfig(
        node=NodeStyle(highlight_fill="#ffa500"),
        link=LinkStyle(highlight_stroke="#ffa500", width=2.0, highlight_width=3.0),
        graph=GraphSettings(expand_tags=False),
    ),
}


def get_profile(name: str) -> ViewConfig:
    """Look up a built-in configuration profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ValueError(f"Unknown view profile '{name}' (known: {known})") from None


__all__ = [
    "Dimensions",
    "NodeStyle",
    "LinkStyle",
    "ForceSettings",
    "ZoomSettings",
    "SimulationSettings",
    "GraphSettings",
    "InteractionSettings",
    "ViewConfig",
    "DEFAULT_PROFILE",
    "PROFILES",
    "get_profile",
]
