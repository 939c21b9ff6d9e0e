from __future__ import annotations


class ShortsEngineError(Exception):
    """Base class for timeline compilation and render failures."""


class ConfigurationError(ShortsEngineError, ValueError):
    """Unknown template/preset/transition mode name or an invalid numeric range."""


class MissingAssetError(ShortsEngineError, FileNotFoundError):
    """A required source image or font is absent."""


class RenderBackendError(ShortsEngineError, RuntimeError):
    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
        command: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
        self.command = list(command or [])

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.strip()}"
        return base


class SkippableFeatureWarning(UserWarning):
    """An optional feature (logo, audio, intro, outro) was omitted."""
