"""Level progression: start, win/loss detection and campaign advance."""
from __future__ import annotations

import logging
import random

from esper import World

from treecycle.components.level_state import LevelState, LevelStatus
from treecycle.events.bus import (
    EVENT_BOARD_SANITIZED,
    EVENT_CAMPAIGN_COMPLETE,
    EVENT_LEVEL_CONTINUE_REQUEST,
    EVENT_LEVEL_LOST,
    EVENT_LEVEL_START_REQUEST,
    EVENT_LEVEL_STARTED,
    EVENT_LEVEL_WON,
    EVENT_TURN_FINALIZED,
    EventBus,
)
from treecycle.systems.tree_ops import (
    build_tree,
    find_matches,
    get_level_config,
    prevent_initial_matches,
    world_rng,
)
from treecycle.utils.game_state import (
    find_level_state,
    get_game_state,
    get_level_state,
    get_or_create_turn_state,
    replace_level_state,
    set_level_status,
)

logger = logging.getLogger(__name__)


class LevelSystem:
    """Owns the level table and the Playing/Won/Lost transitions."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._rng = rng

        self.event_bus.subscribe(EVENT_LEVEL_START_REQUEST, self._on_level_start_request)
        self.event_bus.subscribe(EVENT_LEVEL_CONTINUE_REQUEST, self._on_continue_request)
        self.event_bus.subscribe(EVENT_TURN_FINALIZED, self._on_turn_finalized)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_level_start_request(self, sender, **payload) -> None:
        index = payload.get("index")
        if index is None:
            level = find_level_state(self.world)
            index = level.index if level is not None else 0
        self.start_level(index)

    def _on_continue_request(self, sender, **payload) -> None:
        self.advance()

    def _on_turn_finalized(self, sender, **payload) -> None:
        self.check_status()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_level(self, index: int) -> LevelState:
        """Build a fresh tree and reset all per-level state.

        Indices past the end of the table wrap to level 0 and mark the
        campaign as complete.
        """
        if index < 0:
            raise ValueError(f"level index must be >= 0, got {index}")
        config = get_level_config(self.world)
        game_state = get_game_state(self.world)
        wrapped = index >= len(config)
        if wrapped:
            game_state.campaign_completions += 1
            logger.info("Campaign complete after %d levels; restarting from level 1", len(config))
            self.event_bus.emit(
                EVENT_CAMPAIGN_COMPLETE,
                requested_index=index,
                completions=game_state.campaign_completions,
            )
            index = 0
        game_state.campaign_complete = wrapped

        depth = config.depth_for(index)
        rng = world_rng(self.world, self._rng)
        logger.info("Starting level %d (depth %d)", index + 1, depth)
        build_tree(self.world, depth, config.degree, rng=rng)
        attempts = prevent_initial_matches(self.world, config.sanitize_attempts, rng=rng)
        residual = len(find_matches(self.world))
        if attempts:
            logger.debug("Re-rolled initial matches in %d passes", attempts)
        if residual:
            logger.warning("%d initial matches left after %d re-roll passes", residual, attempts)
        self.event_bus.emit(EVENT_BOARD_SANITIZED, attempts=attempts, residual=residual)

        get_or_create_turn_state(self.world).reset()
        game_state.processing = False
        level = replace_level_state(
            self.world,
            LevelState(
                index=index,
                moves_left=config.turn_limits[index],
                target_score=config.score_targets[index],
            ),
        )
        self.event_bus.emit(
            EVENT_LEVEL_STARTED,
            index=index,
            depth=depth,
            moves_left=level.moves_left,
            target_score=level.target_score,
            campaign_complete=wrapped,
        )
        return level

    def check_status(self) -> LevelStatus:
        """Reaching the target wins even with moves left; running out of moves loses."""
        level = get_level_state(self.world)
        if level.status != LevelStatus.PLAYING:
            return level.status
        if level.score >= level.target_score:
            set_level_status(self.world, self.event_bus, LevelStatus.WON)
            self.event_bus.emit(
                EVENT_LEVEL_WON,
                index=level.index,
                score=level.score,
                target_score=level.target_score,
                moves_left=level.moves_left,
            )
        elif level.moves_left <= 0:
            set_level_status(self.world, self.event_bus, LevelStatus.LOST)
            self.event_bus.emit(
                EVENT_LEVEL_LOST,
                index=level.index,
                score=level.score,
                target_score=level.target_score,
            )
        return level.status

    def advance(self) -> LevelState | None:
        """Next level after a win, the same level after a loss, nothing while playing."""
        level = find_level_state(self.world)
        if level is None:
            return self.start_level(0)
        if level.status == LevelStatus.WON:
            return self.start_level(level.index + 1)
        if level.status == LevelStatus.LOST:
            return self.start_level(level.index)
        return None

    def restart_level(self) -> LevelState:
        level = find_level_state(self.world)
        return self.start_level(level.index if level is not None else 0)
