from __future__ import annotations

from quizboard.api.models import Commentary, EventCard, EventEffect, Player, Question


def game_started(players: list[Player]) -> Commentary:
    names = ", ".join(p.name for p in players)
    return Commentary(message=f"Game started with {names}.", kind="info")


def turn_started(player: Player, *, skipped: Player | None = None) -> Commentary:
    message = f"{player.name}'s turn! Roll the dice."
    if skipped is not None:
        message = f"{skipped.name} skips this turn. {message}"
    return Commentary(message=message, kind="info")


def turn_skipped(player: Player) -> Commentary:
    return Commentary(message=f"{player.name} skips this turn.", kind="warning")


def roll_again(player: Player) -> Commentary:
    return Commentary(message=f"{player.name}, roll again!", kind="info")


def rolled(player: Player, value: int) -> Commentary:
    return Commentary(message=f"{player.name} rolled a {value}! Moving forward {value} spaces.", kind="info")


def rolled_six(player: Player) -> Commentary:
    return Commentary(message=f"{player.name} rolled a 6! They get another turn!", kind="success")


def dice_warning(warning: str) -> Commentary:
    return Commentary(message=warning, kind="warning")


def question_drawn(player: Player, question: Question) -> Commentary:
    return Commentary(message=f"Question for {player.name}: {question.text}", kind="info")


def answered_correctly(player: Player, points: int, question: Question) -> Commentary:
    message = f"Correct answer! {player.name} earned {points} points!"
    if question.explanation:
        message = f"{message} {question.explanation}"
    return Commentary(message=message, kind="success")


def answered_incorrectly(player: Player, question: Question) -> Commentary:
    message = f"Incorrect. {player.name} moves back. The correct answer is: {question.correct_answer}"
    if question.explanation:
        message = f"{message}. {question.explanation}"
    return Commentary(message=message, kind="error")


def event_drawn(player: Player, event: EventCard) -> Commentary:
    return Commentary(message=f"Event for {player.name}: {event.description}", kind="info")


def event_applied(player: Player, event: EventCard) -> Commentary:
    if event.effect == EventEffect.skip:
        return Commentary(message=f"{player.name} must skip their next turn!", kind="info")
    if event.effect == EventEffect.reroll:
        return Commentary(message=f"{player.name} gets to roll again!", kind="info")
    direction = "advances" if event.value > 0 else "moves back"
    return Commentary(message=f"{player.name} {direction} {abs(event.value)} spaces!", kind="info")


def nothing_to_answer(player: Player) -> Commentary:
    return Commentary(message=f"No questions available. {player.name}'s turn ends.", kind="warning")


def winner(player: Player) -> Commentary:
    return Commentary(
        message=f"Congratulations {player.name}! You've won the game with {player.score} points!",
        kind="success",
    )


def tie() -> Commentary:
    return Commentary(message="Game over. It's a tie!", kind="info")
