"""
Sprite Sheet Splitter

Finds the individual sprites in a sprite sheet, optionally keys out a solid
background, and renders each sprite to its own image, either at its original
size or normalized to a common square size.

Public API:
    - process_spritesheet: Generator running the detection and rendering pipeline
    - Session: Holds the sprites of a run, names them and exports them
    - ProcessingConfig: Settings for one run
    - load_image / decode_image / encode_png: Image I/O
"""

from spritesplit.api import ProcessedImage, SpriteState, detect_sprites, process_spritesheet
from spritesplit.config import ProcessingConfig
from spritesplit.errors import DecodeError, EncodingError, SpriteSplitError
from spritesplit.naming import NamingQueue
from spritesplit.raster import BoundingBox, Raster, decode_image, encode_png, load_image
from spritesplit.session import RunResult, Session, Sprite

__version__ = "0.1.0"
__all__ = [
    "process_spritesheet", "detect_sprites", "ProcessedImage", "SpriteState",
    "ProcessingConfig", "SpriteSplitError", "DecodeError", "EncodingError",
    "NamingQueue", "BoundingBox", "Raster", "decode_image", "encode_png", "load_image",
    "RunResult", "Session", "Sprite", "__version__",
]
