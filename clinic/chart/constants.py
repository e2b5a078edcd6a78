"""FDI tooth sequences and chart layout constants.

Upper: 18->11, 21->28 (patient right to left).
Lower: 48->41, 31->38 (patient right to left).
"""

UPPER_TEETH = (18, 17, 16, 15, 14, 13, 12, 11, 21, 22, 23, 24, 25, 26, 27, 28)
LOWER_TEETH = (48, 47, 46, 45, 44, 43, 42, 41, 31, 32, 33, 34, 35, 36, 37, 38)
ALL_TEETH = UPPER_TEETH + LOWER_TEETH

TEETH_PER_ARCH = 16

# Continuous path order around the oval chart
PERMANENT_ORDER = (
    18, 17, 16, 15, 14, 13, 12, 11,
    21, 22, 23, 24, 25, 26, 27, 28,
    38, 37, 36, 35, 34, 33, 32, 31,
    48, 47, 46, 45, 44, 43, 42, 41,
)
DECIDUOUS_ORDER = (
    55, 54, 53, 52, 51,
    61, 62, 63, 64, 65,
    75, 74, 73, 72, 71,
    81, 82, 83, 84, 85,
)

# Arch chart canvas (SVG units, y grows downward)
CHART_WIDTH = 420
CHART_HEIGHT = 200
UPPER_ARCH_TOP = 12
LOWER_ARCH_BOTTOM = 12
ARCH_AMPLITUDE = 28  # parabola depth

# Finite-difference offset used to estimate the arch tangent
NORMAL_SAMPLE_DX = 0.01

# Crown trapezoid
TOOTH_WIDTH = 18
TOOTH_HEIGHT = 10
CROWN_NARROW_RATIO = 0.65

ARCH_PATH_SEGMENTS = 64

# Oval chart (tall viewbox, head at top)
OVAL_VIEWBOX_WIDTH = 280
OVAL_VIEWBOX_HEIGHT = 440
OVAL_PADDING = 44
RADIUS_X_RATIO = 0.52
RADIUS_Y_RATIO = 0.44
OVAL_TOP_TOOTH = 48
