"""HTTP API for the mastery core."""
