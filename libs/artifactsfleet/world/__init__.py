from artifactsfleet.world.game_data import GameData, bank_quantities

__all__ = ["GameData", "bank_quantities"]
