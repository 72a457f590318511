from .generator import FallbackGenerator

__all__ = ["FallbackGenerator"]
