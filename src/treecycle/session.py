"""In-process boundary of the game: one session object owns the world and its systems."""
from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from esper import World

from treecycle.components.level_config import LevelConfig
from treecycle.components.level_state import LevelState, LevelStatus
from treecycle.events.bus import (
    EVENT_GRAVITY_STEP,
    EVENT_MATCH_CLEARED,
    EVENT_NODE_CLICK,
    EVENT_ROOT_REFILLED,
    EVENT_ROTATION_APPLIED,
    EVENT_ROTATION_REJECTED,
    EVENT_TURN_ACTION_STARTED,
    EVENT_TURN_FINALIZED,
    EventBus,
)
from treecycle.systems.level_system import LevelSystem
from treecycle.systems.match_resolution import MatchResolutionSystem
from treecycle.systems.tree import REJECT_BUSY, TreeSystem
from treecycle.systems.tree_ops import GravityMove, TreeSnapshot, rotation_preview, snapshot_tree
from treecycle.systems.turn_system import TurnSystem
from treecycle.utils.game_state import find_level_state, get_game_state
from treecycle.world import create_world


@dataclass(frozen=True, slots=True)
class RotationDelta:
    node_ids: Tuple[int, ...]
    colors: Tuple[Optional[str], ...]


@dataclass(frozen=True, slots=True)
class ClearDelta:
    node_ids: Tuple[int, ...]
    color: Optional[str]
    points: int
    depth: int


@dataclass(frozen=True, slots=True)
class GravityDelta:
    moves: Tuple[GravityMove, ...]
    depth: int


@dataclass(frozen=True, slots=True)
class RefillDelta:
    node_id: int
    color: str
    depth: int


BoardDelta = Union[RotationDelta, ClearDelta, GravityDelta, RefillDelta]


@dataclass(slots=True)
class RotateResult:
    accepted: bool
    score_delta: int
    level_score: int
    moves_left: int
    level_status: LevelStatus
    rejection: Optional[str] = None
    match_count: int = 0
    multiplier: float = 1.0
    deltas: List[BoardDelta] = field(default_factory=list)


class GameSession:
    """Wires the event bus, the world and the game systems together.

    ``rotate`` runs a full action synchronously and returns its outcome along
    with the ordered board deltas, so a presentation layer can animate the
    cascade at whatever pace it likes.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        palette: Dict[str, Tuple[int, int, int]] | None = None,
        level_config: LevelConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.event_bus = event_bus or EventBus()
        self.world: World = create_world(palette=palette, level_config=level_config, rng=rng)
        self.tree_system = TreeSystem(self.world, self.event_bus)
        self.match_resolution_system = MatchResolutionSystem(self.world, self.event_bus)
        self.turn_system = TurnSystem(self.world, self.event_bus)
        self.level_system = LevelSystem(self.world, self.event_bus)

        self._deltas: List[BoardDelta] = []
        self._rejection: Optional[str] = None
        self._started = False
        self._finalized: Dict[str, object] = {}
        self.event_bus.subscribe(EVENT_TURN_ACTION_STARTED, self._on_turn_action_started)
        self.event_bus.subscribe(EVENT_ROTATION_APPLIED, self._on_rotation_applied)
        self.event_bus.subscribe(EVENT_ROTATION_REJECTED, self._on_rotation_rejected)
        self.event_bus.subscribe(EVENT_MATCH_CLEARED, self._on_match_cleared)
        self.event_bus.subscribe(EVENT_GRAVITY_STEP, self._on_gravity_step)
        self.event_bus.subscribe(EVENT_ROOT_REFILLED, self._on_root_refilled)
        self.event_bus.subscribe(EVENT_TURN_FINALIZED, self._on_turn_finalized)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_level(self, index: int) -> LevelState:
        return self.level_system.start_level(index)

    def advance(self) -> LevelState | None:
        return self.level_system.advance()

    def restart_level(self) -> LevelState:
        return self.level_system.restart_level()

    def rotate(self, node_id: int) -> RotateResult:
        if get_game_state(self.world).processing:
            return self._result(accepted=False, rejection=REJECT_BUSY)
        self._deltas = []
        self._rejection = None
        self._started = False
        self._finalized = {}
        self.event_bus.emit(EVENT_NODE_CLICK, node_id=node_id)
        if not self._started or not self._finalized:
            return self._result(accepted=False, rejection=self._rejection)
        return self._result(
            accepted=True,
            score_delta=int(self._finalized.get("score_delta", 0)),
            match_count=int(self._finalized.get("match_count", 0)),
            multiplier=float(self._finalized.get("multiplier", 1.0)),
            deltas=list(self._deltas),
        )

    def rotation_preview(self, node_id: int) -> List[Tuple[int, int]]:
        if get_game_state(self.world).processing:
            return []
        return rotation_preview(self.world, node_id)

    def get_snapshot(self) -> TreeSnapshot:
        snapshot = snapshot_tree(self.world)
        state = get_game_state(self.world)
        level = find_level_state(self.world)
        if level is None:
            return dataclasses.replace(
                snapshot,
                processing=state.processing,
                campaign_complete=state.campaign_complete,
            )
        return dataclasses.replace(
            snapshot,
            level_index=level.index,
            score=level.score,
            target_score=level.target_score,
            moves_left=level.moves_left,
            status=level.status.name,
            processing=state.processing,
            campaign_complete=state.campaign_complete,
        )

    @property
    def level(self) -> LevelState | None:
        return find_level_state(self.world)

    # ------------------------------------------------------------------
    # Delta recording
    # ------------------------------------------------------------------

    def _on_turn_action_started(self, sender, **payload) -> None:
        self._started = True

    def _on_rotation_applied(self, sender, **payload) -> None:
        # The rotation opens the action even if resolution handlers ran first.
        self._deltas.insert(
            0, RotationDelta(node_ids=tuple(payload["node_ids"]), colors=tuple(payload["colors"]))
        )

    def _on_rotation_rejected(self, sender, **payload) -> None:
        # Clicks re-entering during the cascade are rejected without touching this action.
        if not self._started:
            self._rejection = payload.get("reason")

    def _on_match_cleared(self, sender, **payload) -> None:
        self._deltas.append(
            ClearDelta(
                node_ids=tuple(payload["node_ids"]),
                color=payload.get("color"),
                points=payload.get("points", 0),
                depth=payload.get("depth", 0),
            )
        )

    def _on_gravity_step(self, sender, **payload) -> None:
        self._deltas.append(GravityDelta(moves=tuple(payload["moves"]), depth=payload.get("depth", 0)))

    def _on_root_refilled(self, sender, **payload) -> None:
        self._deltas.append(
            RefillDelta(node_id=payload["node_id"], color=payload["color"], depth=payload.get("depth", 0))
        )

    def _on_turn_finalized(self, sender, **payload) -> None:
        self._finalized = dict(payload)

    def _result(self, *, accepted: bool, rejection: Optional[str] = None, score_delta: int = 0,
                match_count: int = 0, multiplier: float = 1.0,
                deltas: List[BoardDelta] | None = None) -> RotateResult:
        level = find_level_state(self.world)
        return RotateResult(
            accepted=accepted,
            score_delta=score_delta,
            level_score=level.score if level is not None else 0,
            moves_left=level.moves_left if level is not None else 0,
            level_status=level.status if level is not None else LevelStatus.PLAYING,
            rejection=rejection,
            match_count=match_count,
            multiplier=multiplier,
            deltas=deltas or [],
        )
