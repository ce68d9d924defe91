"""Code generation: React + Vite client, FastAPI + SQLAlchemy server and README."""

from .generator import generate, transpile
from .output import GenerationResult, GenerationStats, OutputFile

__all__ = ["generate", "transpile", "GenerationResult", "GenerationStats", "OutputFile"]
