from .directory import SetDirectory, mtg_rewrites, onepiece_rewrites, pokemon_rewrites

__all__ = ["SetDirectory", "mtg_rewrites", "onepiece_rewrites", "pokemon_rewrites"]
