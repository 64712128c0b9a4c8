"""
Debug Utilities

Functions for saving annotated board snapshots and managing debug output.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, ImageDraw, ImageFont

from watersort.puzzle import PuzzleState

logger = logging.getLogger(__name__)


# Debug settings
DEBUG_DIR = Path("./debug")
MAX_DEBUG_IMAGES = 10

# Layout in pixels
TUBE_WIDTH = 40
TUBE_GAP = 20
SEGMENT_HEIGHT = 24
MARGIN = 20
INFO_LINE_HEIGHT = 16

BACKGROUND = "#008080"
OUTLINE = "#ffffff"
COMPLETED_OUTLINE = "#7fff00"

# Segment colors by color id (wraps around for larger boards)
COLOR_PALETTE = [
    "#ff0000", "#00ff00", "#0000ff", "#ffff00", "#ff00ff",
    "#00ffff", "#ff8000", "#800080", "#008000", "#800000",
    "#808000", "#008080", "#ffa500", "#ff69b4", "#4b0082",
    "#7fff00", "#f0e68c", "#48d1cc", "#dc143c", "#9370db",
    "#8b4513", "#00ced1", "#556b2f", "#ffffff",
]


def get_segment_color(color_id: int) -> str:
    """
    Get hex color code for a color id.

    Args:
        color_id: Non-negative color id

    Returns:
        Hex color code string
    """
    return COLOR_PALETTE[color_id % len(COLOR_PALETTE)]


def render_board(state: PuzzleState, info: Optional[Dict[str, Any]] = None) -> Image.Image:
    """
    Draw the board as tubes of colored segments.

    Annotations include:
    - One "key: value" line per info entry above the tubes
    - Tube index under each tube
    - Completed tubes outlined in green

    Args:
        state: Board to draw
        info: Optional key/value pairs to print

    Returns:
        PIL Image
    """
    info = info or {}
    font = ImageFont.load_default()

    info_height = INFO_LINE_HEIGHT * len(info)
    tube_pixels = SEGMENT_HEIGHT * state.max_height
    width = MARGIN * 2 + state.tube_count * TUBE_WIDTH + (state.tube_count - 1) * TUBE_GAP
    height = MARGIN * 3 + info_height + tube_pixels + INFO_LINE_HEIGHT

    image = Image.new("RGB", (max(width, 200), height), BACKGROUND)
    draw = ImageDraw.Draw(image)

    for line, (key, value) in enumerate(info.items()):
        draw.text((MARGIN, MARGIN + line * INFO_LINE_HEIGHT), f"{key}: {value}",
                  fill=OUTLINE, font=font)

    top = MARGIN * 2 + info_height
    bottom = top + tube_pixels
    for index, tube in enumerate(state.tubes):
        left = MARGIN + index * (TUBE_WIDTH + TUBE_GAP)

        # Segments fill from the bottom up
        for level, color_id in enumerate(tube.colors):
            seg_bottom = bottom - level * SEGMENT_HEIGHT
            draw.rectangle([left, seg_bottom - SEGMENT_HEIGHT, left + TUBE_WIDTH, seg_bottom],
                           fill=get_segment_color(color_id))

        outline = COMPLETED_OUTLINE if tube.is_completed else OUTLINE
        draw.rectangle([left, top, left + TUBE_WIDTH, bottom], outline=outline, width=2)
        draw.text((left + TUBE_WIDTH // 2 - 4, bottom + 4), str(index), fill=OUTLINE, font=font)

    return image


def save_debug_image(state: PuzzleState, path: Optional[Path] = None,
                     info: Optional[Dict[str, Any]] = None) -> Path:
    """
    Save an annotated snapshot of the board.

    Args:
        state: Board to draw
        path: Output file path (default: timestamped file in DEBUG_DIR)
        info: Optional key/value pairs to print above the tubes

    Returns:
        Path of the written PNG
    """
    if path is None:
        # Ensure debug directory exists
        DEBUG_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        path = DEBUG_DIR / f"debug_{timestamp}.png"
    else:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

    render_board(state, info).save(path, "PNG")
    logger.debug(f"Debug image saved: {path}")

    # Cleanup old debug images
    _cleanup_debug_images()
    return path


def _cleanup_debug_images() -> None:
    """Remove old debug images, keeping only the most recent MAX_DEBUG_IMAGES."""
    if not DEBUG_DIR.exists():
        return

    # Get all debug images sorted by modification time
    debug_files = sorted(
        DEBUG_DIR.glob("debug_*.png"),
        key=lambda p: p.stat().st_mtime,
        reverse=True
    )

    # Remove old files
    for old_file in debug_files[MAX_DEBUG_IMAGES:]:
        try:
            old_file.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {old_file}: {e}")
