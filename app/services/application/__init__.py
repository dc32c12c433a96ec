"""Application services of the watering scheduler."""
