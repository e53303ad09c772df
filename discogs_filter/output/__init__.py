from .generator import OutputGenerator

__all__ = ["OutputGenerator"]
