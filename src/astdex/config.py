import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from astdex.models import ErrorPolicy

DEFAULT_INDEX_URL = "sqlite+aiosqlite://"


def default_error_policy() -> ErrorPolicy:
    return ErrorPolicy(os.getenv("ASTDEX_ON_ERROR", ErrorPolicy.FAIL_FAST.value))


def index_url() -> str:
    return os.getenv("ASTDEX_INDEX_URL", DEFAULT_INDEX_URL)


class ParseOptions(BaseModel):
    """Options handed to the parser boundary.

    ``error_recovery`` keeps partially broken files: the parser emits error nodes
    instead of rejecting the file. ``source_filename`` is only used for in-memory
    sources; files always report their own path.
    """

    model_config = ConfigDict(frozen=True)

    language: str | None = None
    error_recovery: bool = True
    source_filename: str | None = None


class CollectOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    parse: ParseOptions = Field(default_factory=ParseOptions)
    extensions: tuple[str, ...] | None = None
    on_error: ErrorPolicy = Field(default_factory=default_error_policy)

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value)
