"""
Metric configuration and quality standards for the egg quality dashboard
"""

# Metric mapping configuration
METRIC_CONFIG = {
    "weight": {
        "name": "Egg Weight",
        "color": "#3b82f6",
        "unit": "g",
    },
    "breakingStrength": {
        "name": "Breaking Strength",
        "color": "#f97316",
        "unit": "kgf",
    },
    "shellThickness": {
        "name": "Shell Thickness",
        "color": "#10b981",
        "unit": "mm",
    },
    "yolkColor": {
        "name": "Yolk Color",
        "color": "#eab308",
        "unit": "Scale",
    },
    "haughUnits": {
        "name": "Haugh Units",
        "color": "#a855f7",
        "unit": "HU",
    },
}

METRIC_FIELDS = list(METRIC_CONFIG)

# Gauge bounds and poor / acceptable / optimal bands per metric
QUALITY_STANDARDS = {
    "weight": {"min": 45, "max": 80, "ranges": {"poor": (45, 52), "acceptable": (52, 65), "optimal": (65, 80)}},
    "breakingStrength": {"min": 2.0, "max": 5.0, "ranges": {"poor": (2.0, 2.8), "acceptable": (2.8, 3.8), "optimal": (3.8, 5.0)}},
    "shellThickness": {"min": 0.25, "max": 0.45, "ranges": {"poor": (0.25, 0.30), "acceptable": (0.30, 0.38), "optimal": (0.38, 0.45)}},
    "yolkColor": {"min": 5, "max": 13, "ranges": {"poor": (5, 7.5), "acceptable": (7.5, 10.5), "optimal": (10.5, 13)}},
    "haughUnits": {"min": 40, "max": 110, "ranges": {"poor": (40, 65), "acceptable": (65, 90), "optimal": (90, 110)}},
}

POOR = "Poor"
ACCEPTABLE = "Acceptable"
OPTIMAL = "Optimal"

STATUS_COLORS = {
    POOR: "#ef4444",
    ACCEPTABLE: "#eab308",
    OPTIMAL: "#22c55e",
}


def get_metric_config(field_name):
    """Get display configuration for a metric field"""
    return METRIC_CONFIG.get(field_name)


def metric_label(field_name):
    """Display name with unit, e.g. 'Egg Weight (g)'"""
    config = METRIC_CONFIG[field_name]
    return f"{config['name']} ({config['unit']})"


def classify_value(field_name, value):
    """Classify a metric value against its quality standard bands."""
    ranges = QUALITY_STANDARDS[field_name]["ranges"]
    if value < ranges["poor"][1]:
        return POOR
    if value < ranges["acceptable"][1]:
        return ACCEPTABLE
    return OPTIMAL
