"""Engine settings, consanguinity rule flags and the generation cap."""

import logging
import os

from pydantic import BaseModel, Field

from .errors import KinshipInputError

logger = logging.getLogger("kingraph.kinship.config")


DEFAULT_MAX_GENERATIONS = 4
MAX_GENERATION_CEILING = 10  # Hard ceiling, bounds cost on pathological graphs


class ConsanguinityRules(BaseModel):
    """Named flags controlling which marriages are blocked versus only flagged."""
    block_half_sibling_marriage: bool = Field(
        default=True,
        description="Half-sibling marriages are errors when set, warnings otherwise."
    )
    block_step_sibling_marriage: bool = Field(
        default=False,
        description="Step-sibling marriages are errors when set, warnings otherwise."
    )
    block_first_cousin_marriage: bool = Field(
        default=True,
        description="First-cousin marriages are errors when set (varies by jurisdiction)."
    )
    max_kinship_degree: int = Field(
        default=DEFAULT_MAX_GENERATIONS,
        ge=1,
        le=MAX_GENERATION_CEILING,
        description="Generations searched for shared ancestors."
    )


class EngineSettings(BaseModel):
    max_generations: int = Field(default=DEFAULT_MAX_GENERATIONS, ge=1, le=MAX_GENERATION_CEILING)
    rules: ConsanguinityRules = Field(default_factory=ConsanguinityRules)
    cache_max_size: int = Field(default=512, ge=1)
    cache_ttl_seconds: int = Field(default=900, ge=1)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"]
    )


def check_generation_cap(max_generations: int | None) -> int:
    """Return the cap to use, or raise if it is outside 1..MAX_GENERATION_CEILING."""
    if max_generations is None:
        return DEFAULT_MAX_GENERATIONS
    if isinstance(max_generations, bool) or not isinstance(max_generations, int):
        raise KinshipInputError(
            f"max_generations must be an integer, got {max_generations!r}",
            "INVALID_GENERATION_CAP",
        )
    if not 1 <= max_generations <= MAX_GENERATION_CEILING:
        raise KinshipInputError(
            f"max_generations must be between 1 and {MAX_GENERATION_CEILING}, got {max_generations}",
            "INVALID_GENERATION_CAP",
        )
    return max_generations


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}, using {default}")
        return default


def load_settings() -> EngineSettings:
    """
    Build settings from KINGRAPH_* environment variables.

    Call `dotenv.load_dotenv()` first to pick up a local `.env` file. Values
    are validated by pydantic, so an out-of-range cap fails loudly here.
    """
    rules = ConsanguinityRules(
        block_half_sibling_marriage=_env_flag("KINGRAPH_BLOCK_HALF_SIBLING_MARRIAGE", True),
        block_step_sibling_marriage=_env_flag("KINGRAPH_BLOCK_STEP_SIBLING_MARRIAGE", False),
        block_first_cousin_marriage=_env_flag("KINGRAPH_BLOCK_FIRST_COUSIN_MARRIAGE", True),
        max_kinship_degree=_env_int("KINGRAPH_MAX_KINSHIP_DEGREE", DEFAULT_MAX_GENERATIONS),
    )
    settings = EngineSettings(
        max_generations=_env_int("KINGRAPH_MAX_GENERATIONS", DEFAULT_MAX_GENERATIONS),
        rules=rules,
        cache_max_size=_env_int("KINGRAPH_CACHE_MAX_SIZE", 512),
        cache_ttl_seconds=_env_int("KINGRAPH_CACHE_TTL_SECONDS", 900),
    )
    origins = os.getenv("KINGRAPH_CORS_ORIGINS")
    if origins:
        settings.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
    logger.debug(f"Loaded settings: {settings.model_dump()}")
    return settings
