"""
Game shelf backend package.

A small FastAPI service that keeps a list of played games in a JSON file and
serves their uploaded cover images. The ASGI app lives in `game_shelf.main`.
"""

__version__ = "0.1.0"
