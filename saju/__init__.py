"""Four pillars (saju) engine: solar term boundaries, sexagenary pillars and readings."""
