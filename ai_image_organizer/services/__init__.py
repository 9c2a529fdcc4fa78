"""Pipeline stages: per-image analysis, categorization, result assembly."""
from .analyzer import AnalyzerService
from .assembler import assemble
from .categorizer import CategorizerService, categories_by_theme

__all__ = ["AnalyzerService", "CategorizerService", "assemble", "categories_by_theme"]
