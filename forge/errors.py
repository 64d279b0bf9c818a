"""Exception types raised by Forge.

Every failure a build can surface derives from ForgeError so callers (the CLI and
the development server) can catch build problems at a single boundary while
letting programming errors propagate.

Key classes:
- ConfigError: Missing or invalid forge.yaml.
- ContentError: A content file could not be read or is malformed.
- FrontMatterError: The front matter block of a content file is invalid.
- TemplateRenderError: A template is missing or failed to render.
- BuildError: Any other failure while running the pipeline.
"""

from __future__ import annotations

from pathlib import Path


class ForgeError(Exception):
    """Base class for all Forge errors."""


class ConfigError(ForgeError):
    """Error loading or validating the site configuration."""


class ContentError(ForgeError):
    """Error in a content file, with file context.

    Attributes:
        source_path: Path to the content file that caused the error.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path | str, message: str):
        self.source_path = Path(source_path)
        self.message = message
        super().__init__(f"{source_path}: {message}")


class FrontMatterError(ContentError):
    """Malformed or missing front matter in a content file."""


class TemplateRenderError(ForgeError):
    """Error rendering a template.

    Attributes:
        template: Name of the template being rendered.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        template: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.template = template
        self.message = message
        self.original_error = original_error
        super().__init__(f"{template}: {message}")


class BuildError(ForgeError):
    """Error while running the build pipeline."""
