"""Build and flash orchestration for AetherLink firmware roles."""
