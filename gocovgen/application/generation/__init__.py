"""Test data, mock and test source generation."""

from .data_generator import DataGenerator
from .mock_generator import MockGenerator
from .template_engine import TemplateEngine, TemplateRenderError

__all__ = ["DataGenerator", "MockGenerator", "TemplateEngine", "TemplateRenderError"]
