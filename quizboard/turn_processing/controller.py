from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import Any, Literal

from quizboard.api.models import (
    Commentary,
    Difficulty,
    EventCard,
    EventEffect,
    GameState,
    Player,
    Question,
    RosterEntry,
    Space,
    SpaceType,
    TurnPhase,
    TurnView,
)
from quizboard.assets.registry import GameBanks
from quizboard.board import build_track
from quizboard.config import Settings, get_settings
from quizboard.core import commentary as say
from quizboard.core.events import EventType, GameEvent
from quizboard.dice import DiceRandomizer, RollResult
from quizboard.fsm import TurnFSM
from quizboard.scheduling import ScheduledHandle, Scheduler
from quizboard.store import GameStore
from quizboard.transitions import (
    ClearSkip,
    EndGame,
    MovePlayer,
    NextPlayer,
    ResetUsedQuestions,
    SetCurrentEvent,
    SetCurrentQuestion,
    SkipTurn,
    StartGame,
    Transition,
    UpdateScore,
)
from quizboard.turn_processing.turns import current_turn_player, retreat_position
from quizboard.turn_processing.validators import (
    IllegalAction,
    PromptKind,
    TurnStatus,
    ValidationContext,
    pipeline_for_action,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[GameEvent], None]
AfterFeedback = Literal["roll_again", "hand_off"]


def build_roster(entries: Sequence[RosterEntry], *, max_players: int) -> tuple[Player, ...]:
    if not entries:
        raise IllegalAction("At least one player is required to start")
    if len(entries) > max_players:
        raise IllegalAction(f"At most {max_players} players allowed")

    names = [e.name.casefold() for e in entries]
    tokens = [e.token for e in entries]
    if len(set(names)) != len(names) or len(set(tokens)) != len(tokens):
        raise IllegalAction("Players must have unique names and tokens")

    return tuple(Player(id=idx, name=e.name, token=e.token) for idx, e in enumerate(entries, start=1))


class TurnController:
    """Sequences the active player's turn on top of a GameStore.

    Contract:
      - every request goes through the validator pipeline for its action; a
        rejected request raises IllegalAction and changes nothing.
      - accepted requests hold the processing latch until a short delay passes.
      - roll reveals, feedback windows and latch release are scheduled actions;
        all of them are cancelled on reset, game end and `close()`.
      - turn flags live here only; the store holds the canonical GameState.
    """

    def __init__(
        self,
        *,
        store: GameStore,
        banks: GameBanks,
        scheduler: Scheduler,
        settings: Settings | None = None,
        dice: DiceRandomizer | None = None,
        rng: random.Random | None = None,
        on_event: EventSink | None = None,
    ) -> None:
        self.store = store
        self.banks = banks
        self.scheduler = scheduler
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()
        self.dice = dice or DiceRandomizer(rng=self.rng, reveal_frames=self.settings.reveal_frames)
        self._on_event = on_event

        self._timers: dict[str, ScheduledHandle] = {}
        self._pending_roll: RollResult | None = None
        self._after_feedback: AfterFeedback | None = None
        self._prompt: PromptKind | None = None

        self.has_rolled = False
        self.can_interact_with_space = False
        self.is_processing_turn = False
        self.last_roll: int | None = None
        self.reveal_frames: tuple[int, ...] = ()
        self.commentary: Commentary | None = None

        state = store.state
        if state.game_ended:
            self.fsm = TurnFSM(TurnPhase.game_over)
        else:
            self.fsm = TurnFSM()
            # A reloaded game resumes at the start of the current player's turn.
            if state.game_started and state.players:
                self._begin_turn()

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self.store.state

    @property
    def phase(self) -> TurnPhase:
        return self.fsm.phase

    @property
    def track(self) -> list[Space]:
        return build_track(self.state.difficulty, event_every=self.settings.event_space_interval)

    def status(self) -> TurnStatus:
        return TurnStatus(
            state=self.state,
            phase=self.phase,
            has_rolled=self.has_rolled,
            can_interact_with_space=self.can_interact_with_space,
            is_processing_turn=self.is_processing_turn,
            prompt=self._prompt,
        )

    def view(self) -> TurnView:
        player = self.state.current_player
        return TurnView(
            state=self.state,
            phase=self.phase,
            has_rolled=self.has_rolled,
            can_interact_with_space=self.can_interact_with_space,
            is_processing_turn=self.is_processing_turn,
            last_roll=self.last_roll,
            reveal_frames=list(self.reveal_frames),
            commentary=self.commentary,
            current_player_id=player.id if player else None,
        )

    # -- player requests ---------------------------------------------------

    def start_game(self, players: Sequence[Player], *, difficulty: Difficulty | None = None) -> None:
        """Reset to a fresh game with this roster. Also used for "play again"."""

        if not players:
            raise IllegalAction("At least one player is required to start")

        self._cancel_all()
        self._pending_roll = None
        self._after_feedback = None
        self._prompt = None
        self.last_roll = None
        self.reveal_frames = ()
        self.fsm = TurnFSM()

        self._dispatch(StartGame(roster=tuple(players), difficulty=difficulty))
        logger.info("game %s: started (%s, %d players)", self.state.game_id, self.state.difficulty.value, len(players))
        self._say(say.game_started(self.state.players), "GAME_STARTED", players=len(self.state.players))
        self._begin_turn()

    def request_roll(self) -> None:
        self._validate("roll")
        self._hold_latch()

        # Committed before the reveal starts; the reveal never changes it.
        result = self.dice.roll_with_reveal()
        self._pending_roll = result
        self.has_rolled = True
        self.can_interact_with_space = False
        self.reveal_frames = result.frames
        self.fsm.roll()

        if result.warning:
            self._say(say.dice_warning(result.warning))
        self._schedule("roll", self.settings.roll_animation_seconds, self._commit_roll)

    def click_space(self, space_id: int) -> None:
        self._validate("click", space_id=space_id)
        self._hold_latch()
        self.can_interact_with_space = False

        player = current_turn_player(state=self.state)
        space = self.track[space_id]

        # Finish draws a question too: tokens clamp there and keep scoring.
        if space.type in (SpaceType.question, SpaceType.finish):
            question = self._draw_question()
            if question is None:
                self._say(say.nothing_to_answer(player))
                self._end_turn_from_space()
                return
            self._dispatch(SetCurrentQuestion(question=question))
            self._prompt = "question"
            self.fsm.interact()
            self._say(
                say.question_drawn(player, question),
                "QUESTION_DRAWN",
                question_id=question.id,
                space_points=space.points or 0,
            )

        elif space.type == SpaceType.event:
            event = self._draw_event()
            if event is None:
                self._end_turn_from_space()
                return
            self._dispatch(SetCurrentEvent(event=event))
            self._prompt = "event"
            self.fsm.interact()
            self._say(say.event_drawn(player, event), "EVENT_DRAWN", event_id=event.id, effect=event.effect.value)

        else:
            self._end_turn_from_space()

    def submit_answer(self, answer: str) -> None:
        self._validate("answer")
        question = self.state.current_question
        if question is None:
            raise IllegalAction("There is no question to answer")
        if answer not in question.options:
            raise IllegalAction("That is not one of the options")
        self._hold_latch()

        player = current_turn_player(state=self.state)
        correct = answer == question.correct_answer
        if correct:
            points = self.last_roll or 0
            self._dispatch(UpdateScore(player_id=player.id, points=points))
            text = say.answered_correctly(player, points, question)
        else:
            target = retreat_position(player)
            if target != player.position:
                self._dispatch(MovePlayer(delta=target - player.position))
            text = say.answered_incorrectly(player, question)

        self._prompt = None
        self._say(
            text,
            "ANSWER_CHECKED",
            correct=correct,
            question_id=question.id,
            position=current_turn_player(state=self.state).position,
        )

        if self.state.game_ended:
            self._enter_game_over()
            return
        self._start_feedback(roll_again=False)

    def apply_event(self) -> None:
        self._validate("event")
        event = self.state.current_event
        if event is None:
            raise IllegalAction("There is no event to resolve")
        self._hold_latch()

        player = current_turn_player(state=self.state)
        if event.effect == EventEffect.skip:
            self._dispatch(SkipTurn(player_id=player.id))
        elif event.effect == EventEffect.move:
            self._dispatch(MovePlayer(delta=event.value))

        self._prompt = None
        self._say(say.event_applied(player, event), "EVENT_APPLIED", effect=event.effect.value, value=event.value)
        self._start_feedback(roll_again=event.effect == EventEffect.reroll)

    def end_turn(self) -> None:
        """Pass the turn without interacting with the space."""

        self._validate("end_turn")
        self._hold_latch()
        self.can_interact_with_space = False
        self._end_turn_from_space()

    def close_dialog(self) -> None:
        """Close the dice or feedback dialog: the pending step runs now, exactly once."""

        if self.phase == TurnPhase.rolling:
            self._commit_roll()
        elif self.phase == TurnPhase.feedback:
            self._complete_turn()
        else:
            raise IllegalAction("There is no dialog to close")

    def end_game(self) -> None:
        self._validate("end_game")
        self._cancel_all()
        self._dispatch(EndGame())
        self._enter_game_over()

    def close(self) -> None:
        """Teardown: drop every pending scheduled action."""

        self._cancel_all()
        self._pending_roll = None

    # -- turn sequencing -----------------------------------------------------

    def _begin_turn(self) -> None:
        self._reset_turn_flags()
        self.last_roll = None

        player = current_turn_player(state=self.state)
        skipped: Player | None = None
        while player.is_skipping_turn:
            skipped = player
            self._dispatch(ClearSkip(player_id=player.id))
            self._dispatch(NextPlayer())
            self._emit("TURN_SKIPPED", player_id=player.id, message=say.turn_skipped(player).message)
            player = current_turn_player(state=self.state)

        self.fsm.start_turn()
        self._say(say.turn_started(player, skipped=skipped), "TURN_STARTED", player_id=player.id)

    def _commit_roll(self) -> None:
        result = self._pending_roll
        if result is None:
            return
        self._pending_roll = None
        self._cancel("roll")

        player = current_turn_player(state=self.state)
        self.last_roll = result.value
        self.fsm.roll_committed()
        self._dispatch(MovePlayer(delta=result.value))
        position = current_turn_player(state=self.state).position

        if result.value == 6:
            # Extra roll: back to awaiting a roll, space stays locked.
            self.has_rolled = False
            self.can_interact_with_space = False
            self.fsm.extra_roll()
            self._say(say.rolled_six(player), "DICE_ROLLED", value=result.value, position=position)
        else:
            self.can_interact_with_space = True
            self.fsm.allow_interaction()
            self._say(say.rolled(player, result.value), "DICE_ROLLED", value=result.value, position=position)

    def _start_feedback(self, *, roll_again: bool) -> None:
        self._after_feedback = "roll_again" if roll_again else "hand_off"
        self.fsm.show_feedback()
        self._schedule("feedback", self.settings.feedback_seconds, self._complete_turn)

    def _complete_turn(self) -> None:
        self._cancel("feedback")
        after = self._after_feedback
        self._after_feedback = None
        self.fsm.complete()

        if after == "roll_again":
            self._reset_turn_flags()
            self.fsm.roll_again()
            self._say(say.roll_again(current_turn_player(state=self.state)))
        else:
            self._hand_off()

    def _end_turn_from_space(self) -> None:
        self.fsm.end_turn()
        self._hand_off()

    def _hand_off(self) -> None:
        player = current_turn_player(state=self.state)
        self._dispatch(NextPlayer())
        self.fsm.hand_off()
        self._emit("TURN_ENDED", player_id=player.id)
        self._begin_turn()

    def _enter_game_over(self) -> None:
        self._cancel_all()
        self._pending_roll = None
        self._after_feedback = None
        self._prompt = None
        self.has_rolled = False
        self.can_interact_with_space = False
        self.is_processing_turn = False
        if self.phase != TurnPhase.game_over:
            self.fsm.finish()

        winner = self.state.winner
        if winner is not None:
            logger.info("game %s: %s won with %d points", self.state.game_id, winner.name, winner.score)
            self._say(say.winner(winner), "GAME_WON", player_id=winner.id, score=winner.score)
        else:
            logger.info("game %s: ended without a winner", self.state.game_id)
            self._say(say.tie(), "GAME_ENDED")

    # -- draws ---------------------------------------------------------------

    def _draw_question(self) -> Question | None:
        pool = self.banks.questions_for(self.state.difficulty)
        if not pool:
            logger.warning("game %s: no questions for tier %s", self.state.game_id, self.state.difficulty.value)
            return None

        unused = [q for q in pool if q.id not in self.state.used_question_ids]
        if not unused:
            self._dispatch(ResetUsedQuestions())
            unused = list(pool)
        return self.rng.choice(unused)

    def _draw_event(self) -> EventCard | None:
        pool = self.banks.events_for(self.state.difficulty)
        if not pool:
            logger.warning("game %s: no events for tier %s", self.state.game_id, self.state.difficulty.value)
            return None
        return self.rng.choice(pool)

    # -- plumbing --------------------------------------------------------------

    def _validate(self, action: str, *, space_id: int | None = None) -> None:
        ctx = ValidationContext(game_id=str(self.state.game_id), action=action, space_id=space_id)
        try:
            pipeline_for_action(action).validate(ctx=ctx, turn=self.status())
        except IllegalAction as e:
            logger.warning("game %s: rejected %s: %s", ctx.game_id, action, e)
            raise

    def _dispatch(self, transition: Transition) -> GameState:
        return self.store.dispatch(transition)

    def _reset_turn_flags(self) -> None:
        self._cancel("latch")
        self.has_rolled = False
        self.can_interact_with_space = False
        self.is_processing_turn = False

    def _hold_latch(self) -> None:
        self.is_processing_turn = True
        self._schedule("latch", self.settings.latch_release_seconds, self._release_latch)

    def _release_latch(self) -> None:
        self.is_processing_turn = False

    def _schedule(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel(name)

        def fire() -> None:
            self._timers.pop(name, None)
            callback()

        self._timers[name] = self.scheduler.call_later(delay, fire)

    def _cancel(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all(self) -> None:
        for name in list(self._timers):
            self._cancel(name)

    def _say(self, text: Commentary, event: EventType | None = None, **payload: Any) -> None:
        self.commentary = text
        if event is not None:
            player_id = payload.pop("player_id", None)
            self._emit(event, player_id=player_id, message=text.message, **payload)

    def _emit(self, type: EventType, *, player_id: int | None = None, message: str = "", **payload: Any) -> None:
        if self._on_event is None:
            return
        if player_id is None and self.state.current_player is not None:
            player_id = self.state.current_player.id
        self._on_event(
            GameEvent.now(
                type=type,
                game_id=str(self.state.game_id),
                player_id=player_id,
                message=message,
                payload=payload,
            )
        )
