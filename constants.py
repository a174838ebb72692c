# constants.py
"""
Application-level constants for the viewer.

These values are static and do not change between runs. They describe how
the pile is presented (window, colours, overlay), not how it is simulated;
simulation parameters live in config.json.
"""

# Window settings
WINDOW_WIDTH = 420
WINDOW_HEIGHT = 420
FPS = 60
BACKGROUND_COLOR = (250, 244, 232) # Warm off-white
CONFIG_PATH = 'config.json'

# --- Vessel Appearance ---
# Pixel scale applied to the simulation's vessel coordinates when drawing.
DISPLAY_SCALE = 3
# Width of the white rim drawn around the vessel, in simulation pixels.
VESSEL_BORDER_WIDTH = 8
VESSEL_RIM_COLOR = (255, 255, 255)
VESSEL_TOP_COLOR = (255, 248, 231)
VESSEL_BOTTOM_COLOR = (245, 230, 200)

# --- Coin Appearance ---
COIN_COLOR = (232, 178, 54) # Gold
COIN_EDGE_COLOR = (176, 120, 30)
# Edge-on coins are drawn as an ellipse this fraction as wide as they are tall.
SIDE_COIN_ASPECT = 0.35
# Slightly turned front variants (coin-1..coin-3) narrow a little each.
FRONT_COIN_ASPECT_STEP = 0.08

# --- Count Overlay ---
COUNT_TEXT_COLOR = (122, 82, 48)
COUNT_FONT_SIZE = 28
HELP_TEXT_COLOR = (140, 140, 140)
HELP_FONT_SIZE = 14

# --- Rise Glow ---
# A golden halo spins behind the vessel for a moment whenever the count goes up.
GLOW_COLOR = (255, 214, 102)
GLOW_SCALE = 3.5 # Halo diameter relative to the vessel's.
GLOW_RAYS = 12
GLOW_HOLD = 0.6 # Seconds the halo stays lit after a rise.
GLOW_FADE = 0.3 # Seconds to fade in and out.
GLOW_SPIN_PERIOD = 10.0 # Seconds per full turn.
