"""
Submission engines, one per chat site.

An engine writes a rendered question into its site and presses send; reading
the reply is left to the ObservationController.
"""

from .base_engine import BaseEngine
from .deepseek_engine import DeepSeekEngine, DeepSeekPageSource

# Engine registry
ENGINES = {
    "deepseek": DeepSeekEngine,
}


def get_engine(engine_name: str, **kwargs) -> BaseEngine:
    """
    Build a registered engine (case-insensitive name).

    Raises:
        ValueError: For names not in ENGINES
    """
    engine_name = engine_name.lower()

    if engine_name not in ENGINES:
        raise ValueError(
            f"Unknown engine: {engine_name}. "
            f"Available engines: {list(ENGINES.keys())}"
        )

    return ENGINES[engine_name](**kwargs)


__all__ = [
    "BaseEngine",
    "DeepSeekEngine",
    "DeepSeekPageSource",
    "ENGINES",
    "get_engine",
]
