"""Tasker strategy — pure function, no I/O.

Drives the character's current task: fights for monster tasks, resolves the
material chain for item tasks, and trains like the trainer otherwise.
"""

from artifactsfleet import BoardSnapshot, CharacterState, Fight, GameData, Goal, Idle

from agents.trainer.strategy import max_all_skills


def _monster_task_goal(state: CharacterState, game_data: GameData) -> Goal:
    # The agent's fight safety check decides whether this is winnable
    if game_data.get_monster(state.task) is None:
        return Idle(reason=f"unknown task monster: {state.task}")
    if not game_data.find_maps_with_monster(state.task):
        return Idle(reason=f"no map for monster: {state.task}")
    return Fight(monster=state.task)


def _item_task_goal(state: CharacterState, board: BoardSnapshot, game_data: GameData) -> Goal:
    goal = game_data.resolve_item_chain(
        state.task, board.bank.items, state.skill_levels(), state.free_inventory()
    )
    if goal is not None:
        return goal
    return max_all_skills(state, board, game_data)


def task_focused(state: CharacterState, board: BoardSnapshot, game_data: GameData) -> Goal:
    if not state.has_task() or state.task_progress >= state.task_total:
        # Task completion and renewal are handled by the agent's overrides
        return max_all_skills(state, board, game_data)

    match state.task_type:
        case "monsters":
            return _monster_task_goal(state, game_data)
        case "items":
            return _item_task_goal(state, board, game_data)
        case _:
            return max_all_skills(state, board, game_data)
