"""TaskerAgent — works through tasks master assignments."""

from artifactsfleet import BoardSnapshot, CharacterState, FleetAgent, GameData, Goal

from agents.tasker.strategy import task_focused


class TaskerAgent(FleetAgent):
    def decide(self, state: CharacterState, snapshot: BoardSnapshot, game_data: GameData) -> Goal:
        return task_focused(state, snapshot, game_data)
