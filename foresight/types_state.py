"""
foresight/types_state.py - Garden State Dataclasses

GardenState is the working state cloned and evolved during simulation. All
dataclasses here are frozen: every transformation returns a new snapshot,
and a snapshot recorded at one step is never touched by the next.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .validation import compile_schema, require_valid


STATE_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "GardenStateSnapshot",
    "type": "object",
    "properties": {
        "glyphs": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "type"],
                "properties": {
                    "id": {"type": "string"},
                    "type": {"type": "string"},
                    "planted": {"type": ["string", "null"]},
                    "genetics": {
                        "type": "object",
                        "properties": {
                            "loveFactor": {"type": "number"},
                            "resonanceFreq": {"type": "number"},
                        },
                    },
                },
            },
        },
        "connections": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "strength": {"type": "number"},
                },
            },
        },
    },
}

_STATE_VALIDATOR = compile_schema(STATE_JSON_SCHEMA)


@dataclass(frozen=True)
class Genetics:
    love_factor: float = 0.0
    resonance_freq: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"loveFactor": self.love_factor}
        if self.resonance_freq is not None:
            data["resonanceFreq"] = self.resonance_freq
        return data


@dataclass(frozen=True)
class Glyph:
    """Simulated entity in the garden."""
    id: str
    type: str
    genetics: Genetics = Genetics()
    planted: Optional[str] = None

    @property
    def love_factor(self) -> float:
        return self.genetics.love_factor

    def with_love(self, love_factor: float) -> Glyph:
        return replace(self, genetics=replace(self.genetics, love_factor=love_factor))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "genetics": self.genetics.to_dict(),
        }
        if self.planted is not None:
            data["planted"] = self.planted
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Glyph:
        genetics = data.get("genetics") or {}
        resonance = genetics.get("resonanceFreq")
        return cls(
            id=data["id"],
            type=data["type"],
            genetics=Genetics(
                love_factor=float(genetics.get("loveFactor", 0.0)),
                resonance_freq=float(resonance) if resonance is not None else None,
            ),
            planted=data.get("planted"),
        )


@dataclass(frozen=True)
class Connection:
    """Weighted relationship between two glyphs."""
    source: str
    target: str
    strength: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "strength": self.strength}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Connection:
        return cls(
            source=data["source"],
            target=data["target"],
            strength=float(data.get("strength", 0.0)),
        )


@dataclass(frozen=True)
class GardenMetrics:
    """Pure summary of one snapshot."""
    glyph_count: float
    total_love: float
    connection_density: float
    diversity_index: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "glyphCount": self.glyph_count,
            "totalLove": self.total_love,
            "connectionDensity": self.connection_density,
            "diversityIndex": self.diversity_index,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GardenMetrics:
        return cls(
            glyph_count=data["glyphCount"],
            total_love=data["totalLove"],
            connection_density=data["connectionDensity"],
            diversity_index=data["diversityIndex"],
        )


@dataclass(frozen=True)
class GardenState:
    """Immutable garden snapshot: glyphs and connections."""
    glyphs: Tuple[Glyph, ...] = ()
    connections: Tuple[Connection, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "glyphs", tuple(self.glyphs))
        object.__setattr__(self, "connections", tuple(self.connections))

    @property
    def glyph_count(self) -> int:
        return len(self.glyphs)

    def find(self, glyph_id: str) -> Optional[Glyph]:
        for glyph in self.glyphs:
            if glyph.id == glyph_id:
                return glyph
        return None

    # -------------------------------------------------------------------------
    # Copy-on-write transformations
    # -------------------------------------------------------------------------

    def with_glyphs(self, glyphs: Iterable[Glyph]) -> GardenState:
        return replace(self, glyphs=tuple(glyphs))

    def add_glyphs(self, *glyphs: Glyph) -> GardenState:
        return replace(self, glyphs=self.glyphs + tuple(glyphs))

    def add_connection(self, connection: Connection) -> GardenState:
        return replace(self, connections=self.connections + (connection,))

    def replace_glyph(self, glyph: Glyph) -> GardenState:
        return self.with_glyphs(glyph if g.id == glyph.id else g for g in self.glyphs)

    def remove_glyph(self, glyph_id: str) -> GardenState:
        """Drop a glyph and every connection touching it."""
        return GardenState(
            glyphs=tuple(g for g in self.glyphs if g.id != glyph_id),
            connections=tuple(
                c for c in self.connections if glyph_id not in (c.source, c.target)
            ),
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "glyphs": [g.to_dict() for g in self.glyphs],
            "connections": [c.to_dict() for c in self.connections],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Any, source: str = "state") -> GardenState:
        """
        Build a snapshot from its JSON shape.

        Raises:
            InputError: If the document does not match STATE_JSON_SCHEMA
        """
        require_valid(_STATE_VALIDATOR, data, source)
        return cls(
            glyphs=tuple(Glyph.from_dict(g) for g in data.get("glyphs", [])),
            connections=tuple(Connection.from_dict(c) for c in data.get("connections", [])),
        )
