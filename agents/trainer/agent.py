"""TrainerAgent — levels every skill, lowest first."""

from artifactsfleet import BoardSnapshot, CharacterState, FleetAgent, GameData, Goal

from agents.trainer.strategy import max_all_skills


class TrainerAgent(FleetAgent):
    def decide(self, state: CharacterState, snapshot: BoardSnapshot, game_data: GameData) -> Goal:
        return max_all_skills(state, snapshot, game_data)
